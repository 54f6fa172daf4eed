import itertools
import random
from typing import Iterator, Sequence

from fatoolkit.fsa_model import Automaton, TransitionRelation


def random_automaton(rng: random.Random, name: str = 'random', state_count: int = 4,
                     alphabet: Sequence[str] = ('a', 'b'), deterministic: bool = False) -> Automaton:
    """Generate a small automaton; q0 is always the start state."""
    states = [f"q{i}" for i in range(state_count)]
    triples = []
    for state in states:
        for symbol in alphabet:
            if deterministic:
                if rng.random() < 0.8:
                    triples.append((state, symbol, rng.choice(states)))
            else:
                for target in states:
                    if rng.random() < 0.3:
                        triples.append((state, symbol, target))

    accept_states = [state for state in states if rng.random() < 0.4]
    return Automaton(name, states, alphabet, states[0], accept_states, TransitionRelation(triples))


def all_strings(alphabet: Sequence[str], max_length: int) -> Iterator[str]:
    """Every string over ``alphabet`` of length 0..max_length."""
    for length in range(max_length + 1):
        for chars in itertools.product(alphabet, repeat=length):
            yield ''.join(chars)
