class AutomatonError(ValueError):
    """Base class for errors raised by the automaton toolkit."""


class ConstructionError(AutomatonError):
    """An automaton could not be built from the supplied fields."""


class MalformedTransitionError(ConstructionError):
    """A transition record is not of the form ``from,symbol,to``."""

    def __init__(self, line_number: int, line: str):
        self.line_number = line_number
        self.line = line
        super().__init__(
            f"Malformed transition on line {line_number}: '{line}' "
            f"(expected 'from,symbol,to')"
        )


class NotDeterministicError(AutomatonError):
    """An operation that needs a DFA was given a nondeterministic automaton."""


class RegexSyntaxError(AutomatonError):
    """A regular expression could not be parsed."""

    def __init__(self, message: str, position: int):
        self.position = position
        super().__init__(f"{message} at position {position}")
