from django.urls import path
from . import views

urlpatterns = [
    # Build and describe an automaton record
    path('api/describe/', views.describe_automaton, name='describe_automaton'),

    # Acceptance simulation (DFA and NFA)
    path('api/simulate/', views.simulate_automaton, name='simulate_automaton'),
    path('api/check-deterministic/', views.check_deterministic, name='check_deterministic'),

    # FSA Transformation endpoints
    path('api/nfa-to-dfa/', views.convert_nfa_to_dfa, name='nfa_to_dfa'),
    path('api/minimise-dfa/', views.min_dfa, name='minimise_dfa'),
    path('api/fsa-to-regex/', views.convert_fsa_to_regex, name='fsa_to_regex'),
]
