import logging
import re
from abc import abstractmethod, ABC
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from .exceptions import RegexSyntaxError
from .fsa_model import Automaton
from .fsa_transformations import nfa_to_dfa

logger = logging.getLogger(__name__)

EPSILON = 'ε'
EMPTY_SET = '∅'
ESCAPE = '\\'

# Characters with a meaning in the regex syntax; symbols containing them are escaped
OPERATORS = frozenset('|*()' + ESCAPE + EPSILON + EMPTY_SET)


def escape_symbol(symbol: str) -> str:
    """Backslash-escape every operator character inside ``symbol``."""
    return ''.join(ESCAPE + char if char in OPERATORS else char for char in symbol)


class RegexNode(ABC):
    """Base class for regex AST nodes."""

    @abstractmethod
    def to_string(self) -> str:
        """Convert node back to regex string."""
        pass

    @abstractmethod
    def to_pattern(self) -> str:
        """Convert node to an equivalent Python ``re`` pattern."""
        pass

    @abstractmethod
    def simplify(self) -> 'RegexNode':
        """Return a simplified version of this node."""
        pass

    def is_empty(self) -> bool:
        return isinstance(self, EmptySetNode)

    def __str__(self) -> str:
        return self.to_string()


@dataclass(frozen=True)
class EmptySetNode(RegexNode):
    """Empty language node (∅)."""

    def to_string(self) -> str:
        return EMPTY_SET

    def to_pattern(self) -> str:
        return '(?!)'

    def simplify(self) -> 'RegexNode':
        return self


@dataclass(frozen=True)
class EpsilonNode(RegexNode):
    """Epsilon (empty string) node."""

    def to_string(self) -> str:
        return EPSILON

    def to_pattern(self) -> str:
        return '(?:)'

    def simplify(self) -> 'RegexNode':
        return self


@dataclass(frozen=True)
class CharNode(RegexNode):
    """Single alphabet symbol."""
    char: str

    def to_string(self) -> str:
        return escape_symbol(self.char)

    def to_pattern(self) -> str:
        return re.escape(self.char)

    def simplify(self) -> 'RegexNode':
        return self


@dataclass(frozen=True)
class ConcatNode(RegexNode):
    """Concatenation of two or more parts (RS...)."""
    parts: Tuple[RegexNode, ...]

    def to_string(self) -> str:
        rendered = []
        for part in self.parts:
            # Multi-character symbols are grouped: (ab)c vs a(bc)
            if isinstance(part, CharNode) and len(part.char) > 1:
                rendered.append(f"({part.to_string()})")
            else:
                rendered.append(part.to_string())
        return ''.join(rendered)

    def to_pattern(self) -> str:
        return ''.join(f"(?:{part.to_pattern()})" for part in self.parts)

    def simplify(self) -> 'RegexNode':
        parts: List[RegexNode] = []
        for part in self.parts:
            part = part.simplify()

            # Rule: ∅R → ∅, R∅ → ∅ (empty set annihilator)
            if isinstance(part, EmptySetNode):
                return part

            # Rule: εR → R, Rε → R (epsilon identity)
            if isinstance(part, EpsilonNode):
                continue

            # Rule: (RS)T → RST (flatten nested concatenation)
            if isinstance(part, ConcatNode):
                parts.extend(part.parts)
            else:
                parts.append(part)

        if not parts:
            return EpsilonNode()
        if len(parts) == 1:
            return parts[0]
        return ConcatNode(tuple(parts))


@dataclass(frozen=True)
class UnionNode(RegexNode):
    """Alternation of two or more members (R|S|...)."""
    parts: Tuple[RegexNode, ...]

    def to_string(self) -> str:
        return '(' + '|'.join(part.to_string() for part in self.parts) + ')'

    def to_pattern(self) -> str:
        return '(?:' + '|'.join(part.to_pattern() for part in self.parts) + ')'

    def simplify(self) -> 'RegexNode':
        members: Dict[RegexNode, None] = {}
        for part in self.parts:
            part = part.simplify()

            # Rule: ∅|R → R (empty set identity)
            if isinstance(part, EmptySetNode):
                continue

            # Rule: (R|S)|T → R|S|T, duplicates collapse (R|R → R)
            if isinstance(part, UnionNode):
                members.update(dict.fromkeys(part.parts))
            else:
                members[part] = None

        # Rule: ε|R* → R* (the star already matches ε)
        if EpsilonNode() in members and any(isinstance(member, StarNode) for member in members):
            del members[EpsilonNode()]

        if not members:
            return EmptySetNode()
        if len(members) == 1:
            return next(iter(members))
        return UnionNode(tuple(members))


@dataclass(frozen=True)
class StarNode(RegexNode):
    """Kleene star node (R*)."""
    inner: RegexNode

    def to_string(self) -> str:
        inner_str = self.inner.to_string()

        # Single characters and unions (already parenthesised) take the star directly
        if isinstance(self.inner, UnionNode) or (isinstance(self.inner, CharNode) and len(self.inner.char) == 1):
            return f"{inner_str}*"

        return f"({inner_str})*"

    def to_pattern(self) -> str:
        if isinstance(self.inner, (EmptySetNode, EpsilonNode)):
            return '(?:)'
        return f"(?:{self.inner.to_pattern()})*"

    def simplify(self) -> 'RegexNode':
        inner = self.inner.simplify()

        # Rule: ε* → ε, ∅* → ε
        if isinstance(inner, (EpsilonNode, EmptySetNode)):
            return EpsilonNode()

        # Rule: (R*)* → R*
        if isinstance(inner, StarNode):
            return inner

        # Rule: (ε|R)* → R*
        if isinstance(inner, UnionNode) and EpsilonNode() in inner.parts:
            return StarNode(UnionNode(tuple(part for part in inner.parts if part != EpsilonNode()))).simplify()

        return StarNode(inner)


def union(*nodes: RegexNode) -> RegexNode:
    """Alternation with ∅ as the neutral element."""
    return UnionNode(tuple(nodes)).simplify()


def concat(*nodes: RegexNode) -> RegexNode:
    """Concatenation with ε as the neutral element and ∅ as the absorbing one."""
    return ConcatNode(tuple(nodes)).simplify()


def star(node: RegexNode) -> RegexNode:
    return StarNode(node).simplify()


def simplify_regex(node: RegexNode, max_iterations: int = 50) -> RegexNode:
    """
    Simplify a regex tree until no rewrite rule changes it.

    Every rule removes or merges nodes, so the loop reaches a fixpoint
    quickly; ``max_iterations`` only guards against a rule cycle.
    """
    for _ in range(max_iterations):
        simplified = node.simplify()
        if simplified == node:
            break
        node = simplified
    return node


class GNFA:
    """
    Generalised NFA for the state elimination algorithm.

    Edges live in an (n+2)x(n+2) matrix of regex nodes: one row and column
    per real state plus a virtual start and a virtual accept state.
    """

    def __init__(self, states: Sequence[str]):
        self.states = list(states)
        self.index = {state: position for position, state in enumerate(self.states)}
        self.start_state = len(self.states)
        self.accept_state = self.start_state + 1
        size = len(self.states) + 2
        self.matrix: List[List[RegexNode]] = [[EmptySetNode() for _ in range(size)] for _ in range(size)]

    def add_transition(self, from_index: int, to_index: int, regex: RegexNode):
        """Add a transition labeled with a regex, unioned with any existing label."""
        self.matrix[from_index][to_index] = union(self.matrix[from_index][to_index], regex)

    def remove_state(self, k: int):
        """Fold every path through state ``k`` into the remaining edges, then drop ``k``."""
        size = len(self.matrix)
        loop = star(self.matrix[k][k])

        for i in range(size):
            incoming = self.matrix[i][k]
            if i == k or incoming.is_empty():
                continue
            for j in range(size):
                outgoing = self.matrix[k][j]
                if j == k or outgoing.is_empty():
                    continue
                # Build new regex: incoming + (self_loop)* + outgoing
                self.add_transition(i, j, concat(incoming, loop, outgoing))

        for x in range(size):
            self.matrix[x][k] = EmptySetNode()
            self.matrix[k][x] = EmptySetNode()

    def eliminate_states(self) -> RegexNode:
        """Eliminate every real state in order and return the start → accept label."""
        for k in range(len(self.states)):
            self.remove_state(k)
        return self.matrix[self.start_state][self.accept_state]


def fsa_to_gnfa(dfa: Automaton) -> GNFA:
    """Convert an FSA to a GNFA for state elimination."""
    gnfa = GNFA(dfa.referenced_states)

    for from_state, symbol, to_state in dfa.transitions.triples():
        gnfa.add_transition(gnfa.index[from_state], gnfa.index[to_state], CharNode(symbol))

    # Add epsilon transition from new start to original start
    gnfa.add_transition(gnfa.start_state, gnfa.index[dfa.start_state], EpsilonNode())

    # Add epsilon transitions from all original accepting states to new accept
    for state in dfa.referenced_states:
        if dfa.is_accepting(state):
            gnfa.add_transition(gnfa.index[state], gnfa.accept_state, EpsilonNode())

    return gnfa


def fsa_to_regex_node(fsa: Automaton) -> RegexNode:
    """Synthesise the simplified regex tree for the language of ``fsa``."""
    dfa = fsa if fsa.is_deterministic() else nfa_to_dfa(fsa)
    gnfa = fsa_to_gnfa(dfa)
    result = simplify_regex(gnfa.eliminate_states())
    logger.debug("Eliminated %d states of %r", len(gnfa.states), fsa.name)
    return result


def fsa_to_regex(fsa: Automaton) -> str:
    """
    Convert a finite state automaton to a regular expression.

    Nondeterministic input is converted to a DFA first, then states are
    eliminated one by one.

    Args:
        fsa (Automaton): The automaton to convert.

    Returns:
        str: The regular expression. ``∅`` only when the language is empty.
        Operator characters inside symbols are backslash-escaped, and
        multi-character symbols are parenthesised inside concatenations.
    """
    return fsa_to_regex_node(fsa).to_string()


class RegexASTParser:
    """Parser that converts regex string to AST."""

    def __init__(self, regex: str):
        self.regex = regex
        self.pos = 0

    def peek(self) -> Optional[str]:
        """Look at current character without consuming."""
        return self.regex[self.pos] if self.pos < len(self.regex) else None

    def consume(self) -> Optional[str]:
        """Consume and return current character."""
        if self.pos < len(self.regex):
            char = self.regex[self.pos]
            self.pos += 1
            return char
        return None

    def parse(self) -> RegexNode:
        """Parse regex and return AST root."""
        if not self.regex:
            return EpsilonNode()

        result = self.parse_union()
        if self.pos < len(self.regex):
            raise RegexSyntaxError(f"Unexpected character '{self.regex[self.pos]}'", self.pos)
        return result

    def parse_union(self) -> RegexNode:
        """Parse union (|) - lowest precedence."""
        members = [self.parse_concat()]

        while self.peek() == '|':
            self.consume()
            members.append(self.parse_concat())

        return members[0] if len(members) == 1 else UnionNode(tuple(members))

    def parse_concat(self) -> RegexNode:
        """Parse concatenation - implicit, higher precedence than union."""
        parts = [self.parse_postfix()]

        while self.peek() is not None and self.peek() not in ('|', ')'):
            parts.append(self.parse_postfix())

        return parts[0] if len(parts) == 1 else ConcatNode(tuple(parts))

    def parse_postfix(self) -> RegexNode:
        """Parse the Kleene star - highest precedence."""
        inner = self.parse_atom()

        while self.peek() == '*':
            self.consume()
            inner = StarNode(inner)

        return inner

    def parse_atom(self) -> RegexNode:
        """Parse atomic expressions."""
        char = self.peek()

        if char == '(':
            self.consume()

            # Empty group () denotes ε
            if self.peek() == ')':
                self.consume()
                return EpsilonNode()

            inner = self.parse_union()
            if self.peek() != ')':
                raise RegexSyntaxError("Expected ')'", self.pos)
            self.consume()
            return inner

        elif char == EPSILON:
            self.consume()
            return EpsilonNode()

        elif char == EMPTY_SET:
            self.consume()
            return EmptySetNode()

        elif char == ESCAPE:
            self.consume()
            escaped = self.consume()
            if escaped is None:
                raise RegexSyntaxError("Dangling escape", self.pos)
            return CharNode(escaped)

        elif char == '*':
            raise RegexSyntaxError("Unexpected '*'", self.pos)

        elif char is not None and char not in ('|', ')'):
            self.consume()
            return CharNode(char)

        else:
            # Empty alternative such as "a|" or "(|a)"
            return EpsilonNode()


def parse_regex(regex: str) -> RegexNode:
    """
    Parse a regular expression into a regex tree.

    Supports single-character symbols, ``|``, ``*``, implicit concatenation,
    parentheses, ``ε`` and ``∅``. A backslash makes the next character a
    literal symbol, so ``\\*`` matches ``*``.

    Raises:
        RegexSyntaxError: If the expression is malformed.
    """
    return RegexASTParser(regex).parse()


def regex_accepts(regex: str, input_string: str) -> bool:
    """Return True iff ``regex`` matches the whole of ``input_string``."""
    pattern = parse_regex(regex).to_pattern()
    return re.fullmatch(pattern, input_string) is not None
