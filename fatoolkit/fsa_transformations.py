import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple
from collections import deque

from .app_settings import get_setting
from .exceptions import NotDeterministicError
from .fsa_model import Automaton, TransitionRelation
from .fsa_properties import reachable_states

logger = logging.getLogger(__name__)


class StateSet:
    """Immutable set of NFA states that makes up a single DFA state"""

    def __init__(self, states: Iterable[str]):
        self._states = frozenset(states)
        self._sorted = tuple(sorted(self._states))
        self._hash = hash(self._states)

    def __hash__(self):
        return self._hash

    def __eq__(self, other):
        return isinstance(other, StateSet) and self._states == other._states

    def __lt__(self, other):
        return self._sorted < other._sorted

    def __iter__(self):
        return iter(self._sorted)

    def __len__(self):
        return len(self._states)

    def __contains__(self, item):
        return item in self._states

    def meets(self, states: Iterable[str]) -> bool:
        """True if at least one member is in ``states``."""
        return not self._states.isdisjoint(states)

    def label(self, separator: str) -> str:
        """Singletons keep their member's name, larger sets join the sorted members."""
        if len(self._sorted) == 1:
            return self._sorted[0]
        return separator.join(self._sorted)

    def __repr__(self):
        return f"StateSet({list(self._sorted)})"


def nfa_to_dfa(nfa: Automaton) -> Automaton:
    """
    Converts a non-deterministic finite automaton (NFA) to a deterministic finite automaton (DFA)
    using subset construction algorithm.

    A deterministic input is returned as is. Subsets with no successor on a
    symbol get no transition for it, so the resulting DFA may be partial.

    Args:
        nfa (Automaton): The automaton to convert

    Returns:
        Automaton: A DFA where each state represents a subset of NFA states
    """
    if nfa.is_deterministic():
        return nfa

    separator = get_setting('STATE_SET_SEPARATOR')
    labels: Dict[StateSet, str] = {}
    taken: Set[str] = set()

    def label_for(state_set: StateSet) -> str:
        if state_set not in labels:
            label = state_set.label(separator)
            # Different sets can render to the same text when names contain the separator
            while label in taken:
                label += "'"
            labels[state_set] = label
            taken.add(label)
        return labels[state_set]

    def move(state_set: StateSet, symbol: str) -> StateSet:
        """Compute all states reachable from given states on given symbol"""
        result = set()
        for state in state_set:
            result.update(nfa.transitions.targets(state, symbol))
        return StateSet(result)

    start_set = StateSet([nfa.start_state])
    start_label = label_for(start_set)

    queue = deque([start_set])
    dfa_states: List[str] = []
    dfa_accepting: List[str] = []
    dfa_transitions: List[Tuple[str, str, str]] = []

    while queue:
        current = queue.popleft()
        current_label = labels[current]
        dfa_states.append(current_label)

        if current.meets(nfa.accept_states):
            dfa_accepting.append(current_label)

        for symbol in nfa.alphabet:
            next_set = move(current, symbol)
            if not next_set:
                continue

            is_new = next_set not in labels
            next_label = label_for(next_set)
            dfa_transitions.append((current_label, symbol, next_label))
            if is_new:
                queue.append(next_set)

    logger.debug("Subset construction for %r produced %d states from %d",
                 nfa.name, len(dfa_states), len(nfa.states))

    return Automaton(
        nfa.name + get_setting('DFA_SUFFIX'),
        dfa_states,
        nfa.alphabet,
        start_label,
        dfa_accepting,
        TransitionRelation(dfa_transitions),
    )


def _refine(dfa: Automaton, partition: List[List[str]], symbols: Tuple[str, ...]) -> Tuple[List[List[str]], bool]:
    """Split every block by the blocks its states move to; report whether anything split."""
    block_of = {state: index for index, block in enumerate(partition) for state in block}

    def signature(state: str) -> Tuple[Optional[int], ...]:
        result = []
        for symbol in symbols:
            targets = dfa.transitions.targets(state, symbol)
            result.append(block_of[targets[0]] if targets else None)
        return tuple(result)

    refined: List[List[str]] = []
    changed = False
    for block in partition:
        groups: Dict[Tuple[Optional[int], ...], List[str]] = {}
        for state in block:
            groups.setdefault(signature(state), []).append(state)
        if len(groups) > 1:
            changed = True
        refined.extend(groups.values())

    return refined, changed


def minimise_dfa(dfa: Automaton, prune_unreachable: Optional[bool] = None) -> Automaton:
    """
    Minimises a deterministic finite automaton (DFA) by partition refinement.

    Starting from the accepting / non-accepting split, blocks are split by
    the block each state moves to on every symbol until no block splits.
    Unreachable states take part in the refinement unless pruning is
    requested.

    Args:
        dfa (Automaton): A deterministic automaton.
        prune_unreachable (Optional[bool]): Drop unreachable states first.
            Defaults to the PRUNE_UNREACHABLE_BEFORE_MINIMISE setting.

    Returns:
        Automaton: A minimised DFA with one state per final block.

    Raises:
        NotDeterministicError: If the automaton is not deterministic.
    """
    if not dfa.is_deterministic():
        raise NotDeterministicError("DFA minimisation requires a deterministic FSA.")

    if prune_unreachable is None:
        prune_unreachable = get_setting('PRUNE_UNREACHABLE_BEFORE_MINIMISE')
    if prune_unreachable:
        dfa = remove_unreachable_states(dfa)

    states = dfa.referenced_states
    # Symbols used outside the declared alphabet still have to agree inside a block
    symbols = tuple(dict.fromkeys(dfa.alphabet + tuple(symbol for _, symbol in dfa.transitions)))

    accepting = [state for state in states if dfa.is_accepting(state)]
    non_accepting = [state for state in states if not dfa.is_accepting(state)]
    partition = [block for block in (accepting, non_accepting) if block]

    rounds = 0
    changed = True
    while changed:
        partition, changed = _refine(dfa, partition, symbols)
        rounds += 1

    logger.debug("Minimised %r from %d to %d states in %d refinement rounds",
                 dfa.name, len(states), len(partition), rounds)

    prefix = get_setting('MINIMISED_STATE_PREFIX')
    block_names = [f"{prefix}{index}" for index in range(len(partition))]
    state_map = {state: block_names[index] for index, block in enumerate(partition) for state in block}

    new_accepting = [
        block_names[index] for index, block in enumerate(partition)
        if any(dfa.is_accepting(state) for state in block)
    ]
    new_transitions = TransitionRelation(
        (state_map[from_state], symbol, state_map[to_state])
        for from_state, symbol, to_state in dfa.transitions.triples()
    )

    return Automaton(
        dfa.name + get_setting('MIN_SUFFIX'),
        block_names,
        dfa.alphabet,
        state_map[dfa.start_state],
        new_accepting,
        new_transitions,
    )


def remove_unreachable_states(fsa: Automaton) -> Automaton:
    """Remove states that are unreachable from the start state."""
    reachable = reachable_states(fsa)

    return fsa.replace(
        states=[state for state in fsa.referenced_states if state in reachable],
        accept_states=[state for state in fsa.accept_states if state in reachable],
        transitions=TransitionRelation(
            triple for triple in fsa.transitions.triples() if triple[0] in reachable
        ),
    )
