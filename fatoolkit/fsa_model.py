import logging
from collections.abc import Mapping
from typing import Dict, FrozenSet, Iterable, Iterator, List, Tuple, Union

from .exceptions import ConstructionError, MalformedTransitionError

logger = logging.getLogger(__name__)

TransitionKey = Tuple[str, str]
Triple = Tuple[str, str, str]

REQUIRED_RECORD_FIELDS = ('name', 'states', 'alphabet', 'startState', 'acceptStates', 'transitions')


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    """Drop duplicates while keeping first-seen order."""
    return tuple(dict.fromkeys(items))


class TransitionRelation(Mapping):
    """
    Immutable mapping from (state, symbol) to the set of target states.

    Keys and targets keep the order in which they were first added, so
    rendering and the algorithms that walk the relation are reproducible.
    Lookups through the mapping interface return frozensets.
    """

    def __init__(self, triples: Iterable[Triple] = ()):
        table: Dict[TransitionKey, Dict[str, None]] = {}
        for from_state, symbol, to_state in triples:
            table.setdefault((from_state, symbol), {})[to_state] = None
        self._targets: Dict[TransitionKey, Tuple[str, ...]] = {
            key: tuple(targets) for key, targets in table.items()
        }

    @classmethod
    def from_mapping(cls, mapping: Mapping) -> 'TransitionRelation':
        """Build a relation from ``{(state, symbol): targets}``."""
        return cls(
            (from_state, symbol, to_state)
            for (from_state, symbol), targets in mapping.items()
            for to_state in targets
        )

    def __getitem__(self, key: TransitionKey) -> FrozenSet[str]:
        return frozenset(self._targets[key])

    def __iter__(self) -> Iterator[TransitionKey]:
        return iter(self._targets)

    def __len__(self) -> int:
        return len(self._targets)

    def __repr__(self) -> str:
        return f"TransitionRelation({list(self.triples())!r})"

    def targets(self, state: str, symbol: str) -> Tuple[str, ...]:
        """Targets of (state, symbol) in insertion order; empty when undefined."""
        return self._targets.get((state, symbol), ())

    def triples(self) -> Iterator[Triple]:
        """Iterate over every (from, symbol, to) triple in relation order."""
        for (from_state, symbol), targets in self._targets.items():
            for to_state in targets:
                yield from_state, symbol, to_state

    def is_deterministic(self) -> bool:
        return all(len(targets) <= 1 for targets in self._targets.values())


def parse_transitions(text: str) -> TransitionRelation:
    """
    Parse newline-separated ``from,symbol,to`` records.

    Blank lines are ignored and each field is trimmed. Records sharing the
    same ``from,symbol`` pair are unioned.

    Args:
        text: The transition text.

    Returns:
        TransitionRelation: The parsed relation.

    Raises:
        MalformedTransitionError: If a record does not have exactly three
            non-empty fields.
    """
    triples: List[Triple] = []
    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line:
            continue

        fields = [field.strip() for field in line.split(',')]
        if len(fields) != 3 or not all(fields):
            raise MalformedTransitionError(line_number, line)

        triples.append((fields[0], fields[1], fields[2]))

    return TransitionRelation(triples)


def format_transitions(relation: TransitionRelation) -> str:
    """Render a relation back into the newline record text form."""
    return '\n'.join(f"{from_state},{symbol},{to_state}"
                     for from_state, symbol, to_state in relation.triples())


class Automaton:
    """
    A finite automaton, deterministic or not.

    Instances are immutable: transformations always build new automata
    instead of editing the one they were given.
    """

    def __init__(self, name: str, states: Iterable[str], alphabet: Iterable[str], start_state: str,
                 accept_states: Iterable[str],
                 transitions: Union[str, TransitionRelation, Mapping] = ''):
        self._name = name
        self._states = _unique(states)
        self._alphabet = _unique(alphabet)
        self._start_state = start_state
        self._accept_states = frozenset(accept_states)

        if isinstance(transitions, TransitionRelation):
            self._transitions = transitions
        elif isinstance(transitions, str):
            self._transitions = parse_transitions(transitions)
        else:
            self._transitions = TransitionRelation.from_mapping(transitions)

        declared = set(self._states)
        if start_state not in declared:
            raise ConstructionError(f"Start state '{start_state}' is not in the state set")
        for state in self._accept_states:
            if state not in declared:
                raise ConstructionError(f"Accept state '{state}' is not in the state set")

        logger.debug("Built automaton %r with %d states and %d transition keys",
                     name, len(self._states), len(self._transitions))

    @property
    def name(self) -> str:
        return self._name

    @property
    def states(self) -> Tuple[str, ...]:
        return self._states

    @property
    def alphabet(self) -> Tuple[str, ...]:
        return self._alphabet

    @property
    def start_state(self) -> str:
        return self._start_state

    @property
    def accept_states(self) -> FrozenSet[str]:
        return self._accept_states

    @property
    def transitions(self) -> TransitionRelation:
        return self._transitions

    @property
    def referenced_states(self) -> Tuple[str, ...]:
        """
        Declared states followed by any transition endpoint that was never
        declared. The text parser does not reject such endpoints, so the
        algorithms treat them as ordinary states.
        """
        extra = []
        for from_state, _, to_state in self._transitions.triples():
            extra.append(from_state)
            extra.append(to_state)
        return _unique(self._states + tuple(extra))

    def is_deterministic(self) -> bool:
        """True iff no (state, symbol) pair leads to more than one state."""
        return self._transitions.is_deterministic()

    def is_accepting(self, state: str) -> bool:
        return state in self._accept_states

    def replace(self, **changes) -> 'Automaton':
        """Return a new automaton with the given constructor fields replaced."""
        fields = {
            'name': self._name,
            'states': self._states,
            'alphabet': self._alphabet,
            'start_state': self._start_state,
            'accept_states': self._accept_states,
            'transitions': self._transitions,
        }
        fields.update(changes)
        return Automaton(**fields)

    def render(self) -> str:
        """Human-readable listing of the automaton."""
        accept = [state for state in self.referenced_states if state in self._accept_states]
        lines = [
            f"Automaton: {self._name}",
            f"States: {{{', '.join(self._states)}}}",
            f"Alphabet: {{{', '.join(self._alphabet)}}}",
            f"Start State: {self._start_state}",
            f"Accept States: {{{', '.join(accept)}}}",
            "Transitions:",
        ]
        for from_state, symbol, to_state in self._transitions.triples():
            lines.append(f" {from_state} --> {symbol} --> {to_state}")
        return '\n'.join(lines) + '\n'

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        kind = 'DFA' if self.is_deterministic() else 'NFA'
        return f"<Automaton {self._name!r} {kind} states={len(self._states)}>"


def _label_list(value, field: str) -> List[str]:
    """Accept either a comma separated string or a sequence of labels."""
    if isinstance(value, str):
        items = value.split(',')
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
    else:
        raise ConstructionError(f"{field} must be a list or a comma separated string")

    labels = []
    for item in items:
        if not isinstance(item, str):
            raise ConstructionError(f"{field} entries must be strings")
        labels.append(item.strip())
    return labels


def normalise_transitions(transitions) -> str:
    """
    Bring any accepted transition representation back to the text form.

    Supported inputs are the newline record text itself, a sequence of
    ``(key, targets)`` pairs and a mapping ``key -> targets``, where ``key``
    is ``"from,symbol"``.
    """
    if isinstance(transitions, str):
        return transitions

    if isinstance(transitions, Mapping):
        pairs = list(transitions.items())
    elif isinstance(transitions, (list, tuple)):
        pairs = list(transitions)
    else:
        raise ConstructionError("transitions must be text, a list of [key, targets] pairs or a mapping")

    lines = []
    for pair in pairs:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ConstructionError(f"Transition entry must be a [key, targets] pair: {pair!r}")
        key, targets = pair
        if not isinstance(key, str):
            raise ConstructionError(f"Transition key must be a 'from,symbol' string: {key!r}")
        if isinstance(targets, str):
            targets = [targets]
        if not isinstance(targets, (list, tuple)) or not all(isinstance(target, str) for target in targets):
            raise ConstructionError(f"Targets of '{key}' must be a state name or a list of state names")
        for target in targets:
            lines.append(f"{key},{target}")
    return '\n'.join(lines)


def automaton_from_record(record: Mapping) -> Automaton:
    """
    Build an automaton from a persisted record.

    Args:
        record: A mapping with the keys name, states, alphabet, startState,
            acceptStates and transitions. Every field is required and must
            be non-empty.

    Returns:
        Automaton: The constructed automaton.

    Raises:
        ConstructionError: If a field is missing, empty or inconsistent.
    """
    if not isinstance(record, Mapping):
        raise ConstructionError("Automaton record must be a mapping")

    for field in REQUIRED_RECORD_FIELDS:
        value = record.get(field)
        if isinstance(value, str):
            value = value.strip()
        if not value:
            raise ConstructionError(f"Missing required field: {field}")

    name = record['name']
    start_state = record['startState']
    if not isinstance(name, str) or not isinstance(start_state, str):
        raise ConstructionError("name and startState must be strings")

    states = _label_list(record['states'], 'states')
    alphabet = _label_list(record['alphabet'], 'alphabet')
    accept_states = _label_list(record['acceptStates'], 'acceptStates')

    return Automaton(
        name.strip(),
        states,
        alphabet,
        start_state.strip(),
        accept_states,
        normalise_transitions(record['transitions']),
    )


def automaton_to_record(automaton: Automaton) -> Dict:
    """Export an automaton as a record, transitions as ``[key, targets]`` pairs."""
    return {
        'name': automaton.name,
        'states': list(automaton.states),
        'alphabet': list(automaton.alphabet),
        'startState': automaton.start_state,
        'acceptStates': [state for state in automaton.states if automaton.is_accepting(state)],
        'transitions': [
            [f"{from_state},{symbol}", list(automaton.transitions.targets(from_state, symbol))]
            for from_state, symbol in automaton.transitions
        ],
    }
