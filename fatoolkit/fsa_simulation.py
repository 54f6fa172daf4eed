import logging
from typing import FrozenSet, Iterable, List, NamedTuple, Optional

from .fsa_model import Automaton

logger = logging.getLogger(__name__)


class SimulationResult(NamedTuple):
    """Outcome of running an input string through an automaton"""
    accepted: bool
    steps: List[FrozenSet[str]]
    rejection_reason: Optional[str]
    rejection_position: Optional[int]


def step(automaton: Automaton, current_states: Iterable[str], symbol: str) -> FrozenSet[str]:
    """
    Compute the set of states reachable from ``current_states`` on ``symbol``.

    States without a transition for the symbol contribute nothing.
    """
    next_states = set()
    for state in current_states:
        next_states.update(automaton.transitions.targets(state, symbol))
    return frozenset(next_states)


def simulate(automaton: Automaton, input_string: str) -> SimulationResult:
    """
    Simulates the automaton on the given input string.

    The simulation tracks the set of current states, so the same procedure
    handles deterministic and nondeterministic automata.

    Args:
        automaton: The automaton to run.
        input_string: The input string, consumed one character at a time.

    Returns:
        SimulationResult: ``steps`` holds the current-state set before any
        input and after every consumed symbol. On rejection the reason and
        the input position where it was decided are filled in.
    """
    current_states = frozenset([automaton.start_state])
    steps = [current_states]
    alphabet = set(automaton.alphabet)

    for position, symbol in enumerate(input_string):
        # Out-of-alphabet symbols reject immediately
        if symbol not in alphabet:
            return SimulationResult(False, steps, f"Symbol '{symbol}' not in alphabet", position)

        current_states = step(automaton, current_states, symbol)
        steps.append(current_states)

        # Nothing can be reached from the empty set, so stop early
        if not current_states:
            return SimulationResult(False, steps, f"No transition defined for symbol '{symbol}'", position)

    if current_states & automaton.accept_states:
        return SimulationResult(True, steps, None, None)

    return SimulationResult(False, steps, "No final state is accepting", len(input_string))


def accepts(automaton: Automaton, input_string: str) -> bool:
    """Return True iff the automaton accepts ``input_string``."""
    result = simulate(automaton, input_string)
    logger.debug("Automaton %r %s %r", automaton.name,
                 'accepts' if result.accepted else 'rejects', input_string)
    return result.accepted
