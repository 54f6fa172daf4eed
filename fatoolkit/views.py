import json
import logging
from typing import Dict, Tuple

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from .fsa_model import Automaton, automaton_from_record, automaton_to_record
from .fsa_properties import check_all_properties
from .fsa_simulation import simulate
from .fsa_transformations import minimise_dfa, nfa_to_dfa
from .regex_conversions import fsa_to_regex

logger = logging.getLogger(__name__)


def _load_automaton(request) -> Tuple[Dict, Automaton]:
    """Parse the request body and build the automaton it carries."""
    data = json.loads(request.body)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    record = data.get('automaton')
    if not record:
        raise ValueError('Missing automaton definition')
    return data, automaton_from_record(record)


def _stats(automaton: Automaton) -> dict:
    return {
        'states_count': len(automaton.states),
        'alphabet_size': len(automaton.alphabet),
        'transitions_count': sum(1 for _ in automaton.transitions.triples()),
        'accepting_states_count': len(automaton.accept_states),
    }


def _error_response(request, error: Exception, status: int) -> JsonResponse:
    if status >= 500:
        logger.exception("Unexpected failure handling %s", request.path)
        return JsonResponse({'error': f'Server error: {str(error)}'}, status=status)

    logger.warning("Rejected request to %s: %s", request.path, error)
    return JsonResponse({'error': str(error)}, status=status)


@csrf_exempt
@require_POST
def describe_automaton(request):
    """
    Django view that builds an automaton and describes it.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton record

    Returns the rendered listing, the normalised record and its properties.
    """
    try:
        _, automaton = _load_automaton(request)
        return JsonResponse({
            'automaton': automaton_to_record(automaton),
            'rendered': automaton.render(),
            'type': 'dfa' if automaton.is_deterministic() else 'nfa',
            'properties': check_all_properties(automaton),
        })
    except ValueError as e:
        return _error_response(request, e, 400)
    except Exception as e:
        return _error_response(request, e, 500)


@csrf_exempt
@require_POST
def simulate_automaton(request):
    """
    Django view to handle simulation requests for DFAs and NFAs alike.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton record
    - input: The input string to simulate
    """
    try:
        data, automaton = _load_automaton(request)
        input_string = data.get('input', '')
        if not isinstance(input_string, str):
            raise ValueError('input must be a string')

        result = simulate(automaton, input_string)
        return JsonResponse({
            'accepted': result.accepted,
            'type': 'dfa' if automaton.is_deterministic() else 'nfa',
            'steps': [sorted(states) for states in result.steps],
            'rejection_reason': result.rejection_reason,
            'rejection_position': result.rejection_position,
        })
    except ValueError as e:
        return _error_response(request, e, 400)
    except Exception as e:
        return _error_response(request, e, 500)


@csrf_exempt
@require_POST
def check_deterministic(request):
    """Django view reporting whether an automaton is deterministic."""
    try:
        _, automaton = _load_automaton(request)
        return JsonResponse({'deterministic': automaton.is_deterministic()})
    except ValueError as e:
        return _error_response(request, e, 400)
    except Exception as e:
        return _error_response(request, e, 500)


@csrf_exempt
@require_POST
def convert_nfa_to_dfa(request):
    """
    Django view to handle NFA to DFA conversion requests.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton record (deterministic or not)

    Returns a JSON response with the converted DFA.
    """
    try:
        _, automaton = _load_automaton(request)
        was_deterministic = automaton.is_deterministic()
        converted = nfa_to_dfa(automaton)

        original_stats = _stats(automaton)
        converted_stats = _stats(converted)

        return JsonResponse({
            'success': True,
            'converted_dfa': automaton_to_record(converted),
            'statistics': {
                'original': original_stats,
                'converted': converted_stats,
                'states_added': converted_stats['states_count'] - original_stats['states_count'],
                'was_already_deterministic': was_deterministic,
            },
            'message': 'Input was already a DFA' if was_deterministic
                       else 'NFA successfully converted to DFA'
        })
    except ValueError as e:
        return _error_response(request, e, 400)
    except Exception as e:
        return _error_response(request, e, 500)


@csrf_exempt
@require_POST
def min_dfa(request):
    """
    Django view to handle DFA minimisation requests.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton record (must be deterministic)
    - pruneUnreachable: Optional, drop unreachable states first

    Returns a JSON response with the minimised DFA.
    """
    try:
        data, automaton = _load_automaton(request)
        prune = data.get('pruneUnreachable')
        if prune is not None and not isinstance(prune, bool):
            raise ValueError('pruneUnreachable must be true, false or null')

        # Minimisation is only defined for deterministic input
        if not automaton.is_deterministic():
            return JsonResponse({
                'error': 'DFA minimisation requires a deterministic FSA. '
                         'The provided FSA is non-deterministic.'
            }, status=400)

        minimised = minimise_dfa(automaton, prune_unreachable=prune)

        original_stats = _stats(automaton)
        minimised_stats = _stats(minimised)
        states_reduced = original_stats['states_count'] - minimised_stats['states_count']

        return JsonResponse({
            'success': True,
            'minimised_fsa': automaton_to_record(minimised),
            'statistics': {
                'original': original_stats,
                'minimised': minimised_stats,
                'states_reduced': states_reduced,
                'is_already_minimal': states_reduced == 0,
            },
            'message': 'DFA was already minimal' if states_reduced == 0
                       else 'DFA minimised successfully'
        })
    except ValueError as e:
        return _error_response(request, e, 400)
    except Exception as e:
        return _error_response(request, e, 500)


@csrf_exempt
@require_POST
def convert_fsa_to_regex(request):
    """
    Django view converting an automaton to an equivalent regular expression.

    Expects a POST request with a JSON body containing:
    - automaton: The automaton record
    """
    try:
        _, automaton = _load_automaton(request)
        return JsonResponse({
            'success': True,
            'regex': fsa_to_regex(automaton),
            'converted_to_dfa': not automaton.is_deterministic(),
        })
    except ValueError as e:
        return _error_response(request, e, 400)
    except Exception as e:
        return _error_response(request, e, 500)
