from typing import Dict, Set
from collections import deque

from .fsa_model import Automaton


def is_deterministic(fsa: Automaton) -> bool:
    """
    Checks if the FSA is deterministic.

    An FSA is deterministic if for each state and each symbol there is at
    most one transition. Missing transitions are allowed (partial DFA).

    Args:
        fsa: The automaton to check

    Returns:
        bool: True if the FSA is deterministic, False otherwise
    """
    return fsa.is_deterministic()


def is_complete(fsa: Automaton) -> bool:
    """
    Checks if the FSA is complete.

    An FSA is complete if for each state and each symbol, there is at least one transition.

    Args:
        fsa: The automaton to check

    Returns:
        bool: True if the FSA is complete, False otherwise
    """
    for state in fsa.referenced_states:
        for symbol in fsa.alphabet:
            if not fsa.transitions.targets(state, symbol):
                return False

    return True


def reachable_states(fsa: Automaton) -> Set[str]:
    """Breadth-first search for every state reachable from the starting state."""
    reachable = {fsa.start_state}
    queue = deque([fsa.start_state])

    # Index outgoing edges once instead of rescanning the relation per state
    successors: Dict[str, Set[str]] = {}
    for from_state, _, to_state in fsa.transitions.triples():
        successors.setdefault(from_state, set()).add(to_state)

    while queue:
        current = queue.popleft()
        for target in successors.get(current, ()):
            if target not in reachable:
                reachable.add(target)
                queue.append(target)

    return reachable


def is_connected(fsa: Automaton) -> bool:
    """
    Checks if the FSA is connected.

    An FSA is connected if all states are reachable from the starting state.
    """
    return reachable_states(fsa) >= set(fsa.referenced_states)


def check_all_properties(fsa: Automaton) -> Dict:
    """
    Check all FSA properties at once.

    Returns:
        Dict: Dictionary containing all property check results:
        {
            'deterministic': bool,
            'complete': bool,
            'connected': bool
        }
    """
    return {
        'deterministic': is_deterministic(fsa),
        'complete': is_complete(fsa),
        'connected': is_connected(fsa)
    }
