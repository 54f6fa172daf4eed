import json
from django.test import TestCase, Client
from django.urls import reverse


class FSAViewTestCase(TestCase):
    """Base test case with common automaton records and utilities"""

    def setUp(self):
        self.client = Client()

        # Sample deterministic automaton (odd number of 1s)
        self.sample_dfa = {
            'name': 'parity',
            'states': ['q0', 'q1'],
            'alphabet': ['0', '1'],
            'startState': 'q0',
            'acceptStates': ['q1'],
            'transitions': "q0,0,q0\nq0,1,q1\nq1,0,q1\nq1,1,q0"
        }

        # Sample non-deterministic automaton, transitions in exported pair form
        self.sample_nfa = {
            'name': 'ends_ab',
            'states': ['A', 'B', 'C'],
            'alphabet': ['a', 'b'],
            'startState': 'A',
            'acceptStates': ['C'],
            'transitions': [['A,a', ['A', 'B']], ['B,b', ['C']]]
        }

        # Invalid record (missing required keys)
        self.invalid_record = {
            'name': 'broken',
            'states': ['q0'],
        }

    def post_json(self, url, data):
        """Helper method to send JSON POST requests"""
        return self.client.post(
            url,
            data=json.dumps(data),
            content_type='application/json'
        )


class DescribeAutomatonViewTests(FSAViewTestCase):

    def test_describe_dfa(self):
        response = self.post_json(reverse('describe_automaton'), {'automaton': self.sample_dfa})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['type'], 'dfa')
        self.assertTrue(data['rendered'].startswith('Automaton: parity\n'))
        self.assertEqual(data['automaton']['transitions'][1], ['q0,1', ['q1']])
        self.assertEqual(data['properties'], {'deterministic': True, 'complete': True, 'connected': True})

    def test_describe_nfa_from_pairs(self):
        response = self.post_json(reverse('describe_automaton'), {'automaton': self.sample_nfa})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['type'], 'nfa')

    def test_missing_automaton(self):
        response = self.post_json(reverse('describe_automaton'), {})

        self.assertEqual(response.status_code, 400)
        self.assertIn('Missing automaton definition', response.json()['error'])

    def test_invalid_record(self):
        response = self.post_json(reverse('describe_automaton'), {'automaton': self.invalid_record})

        self.assertEqual(response.status_code, 400)
        self.assertIn('Missing required field', response.json()['error'])

    def test_malformed_transition(self):
        record = dict(self.sample_dfa, transitions="q0,0,q0\nq0,1")

        response = self.post_json(reverse('describe_automaton'), {'automaton': record})

        self.assertEqual(response.status_code, 400)
        self.assertIn('line 2', response.json()['error'])

    def test_non_list_targets(self):
        record = dict(self.sample_dfa, transitions=[['q0,0', 5]])

        response = self.post_json(reverse('describe_automaton'), {'automaton': record})

        self.assertEqual(response.status_code, 400)
        self.assertIn("Targets of 'q0,0'", response.json()['error'])

    def test_invalid_json(self):
        response = self.client.post(
            reverse('describe_automaton'),
            data='{not json',
            content_type='application/json'
        )

        self.assertEqual(response.status_code, 400)

    def test_body_must_be_object(self):
        response = self.post_json(reverse('describe_automaton'), ['automaton'])

        self.assertEqual(response.status_code, 400)

    def test_get_request_not_allowed(self):
        response = self.client.get(reverse('describe_automaton'))

        self.assertEqual(response.status_code, 405)


class SimulateAutomatonViewTests(FSAViewTestCase):

    def test_simulate_dfa_accepted(self):
        response = self.post_json(reverse('simulate_automaton'), {'automaton': self.sample_dfa, 'input': '1'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['accepted'])
        self.assertEqual(data['type'], 'dfa')
        self.assertEqual(data['steps'], [['q0'], ['q1']])
        self.assertIsNone(data['rejection_reason'])

    def test_simulate_dfa_rejected(self):
        response = self.post_json(reverse('simulate_automaton'), {'automaton': self.sample_dfa, 'input': '11'})

        data = response.json()
        self.assertFalse(data['accepted'])
        self.assertEqual(data['rejection_position'], 2)

    def test_simulate_nfa_accepted(self):
        response = self.post_json(reverse('simulate_automaton'), {'automaton': self.sample_nfa, 'input': 'aab'})

        data = response.json()
        self.assertTrue(data['accepted'])
        self.assertEqual(data['type'], 'nfa')
        self.assertEqual(data['steps'][1], ['A', 'B'])

    def test_symbol_not_in_alphabet(self):
        response = self.post_json(reverse('simulate_automaton'), {'automaton': self.sample_dfa, 'input': '1x'})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertFalse(data['accepted'])
        self.assertEqual(data['rejection_reason'], "Symbol 'x' not in alphabet")

    def test_empty_input_string(self):
        response = self.post_json(reverse('simulate_automaton'), {'automaton': self.sample_dfa})

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()['accepted'])

    def test_input_must_be_string(self):
        response = self.post_json(reverse('simulate_automaton'), {'automaton': self.sample_dfa, 'input': 7})

        self.assertEqual(response.status_code, 400)


class CheckDeterministicViewTests(FSAViewTestCase):

    def test_check_dfa(self):
        response = self.post_json(reverse('check_deterministic'), {'automaton': self.sample_dfa})

        self.assertEqual(response.json(), {'deterministic': True})

    def test_check_nfa(self):
        response = self.post_json(reverse('check_deterministic'), {'automaton': self.sample_nfa})

        self.assertEqual(response.json(), {'deterministic': False})


class TransformationViewTests(FSAViewTestCase):

    def test_nfa_to_dfa(self):
        response = self.post_json(reverse('nfa_to_dfa'), {'automaton': self.sample_nfa})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertTrue(data['success'])
        self.assertEqual(data['converted_dfa']['name'], 'ends_ab_DFA')
        self.assertEqual(data['converted_dfa']['states'], ['A', 'A-B', 'C'])
        self.assertFalse(data['statistics']['was_already_deterministic'])
        self.assertEqual(data['message'], 'NFA successfully converted to DFA')

    def test_nfa_to_dfa_with_dfa(self):
        response = self.post_json(reverse('nfa_to_dfa'), {'automaton': self.sample_dfa})

        data = response.json()
        self.assertTrue(data['statistics']['was_already_deterministic'])
        self.assertEqual(data['converted_dfa']['name'], 'parity')

    def test_minimise_dfa(self):
        record = {
            'name': 'pair',
            'states': ['A', 'B'],
            'alphabet': ['a'],
            'startState': 'A',
            'acceptStates': ['A', 'B'],
            'transitions': "A,a,B\nB,a,A"
        }

        response = self.post_json(reverse('minimise_dfa'), {'automaton': record})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['minimised_fsa']['states'], ['S0'])
        self.assertEqual(data['statistics']['states_reduced'], 1)
        self.assertEqual(data['message'], 'DFA minimised successfully')

    def test_minimise_already_minimal(self):
        response = self.post_json(reverse('minimise_dfa'), {'automaton': self.sample_dfa})

        data = response.json()
        self.assertTrue(data['statistics']['is_already_minimal'])
        self.assertEqual(data['message'], 'DFA was already minimal')

    def test_minimise_prune_flag(self):
        record = {
            'name': 'island',
            'states': ['S0', 'S1', 'U'],
            'alphabet': ['a'],
            'startState': 'S0',
            'acceptStates': ['S1', 'U'],
            'transitions': "S0,a,S1\nS1,a,S0"
        }

        kept = self.post_json(reverse('minimise_dfa'), {'automaton': record}).json()
        pruned = self.post_json(reverse('minimise_dfa'), {'automaton': record, 'pruneUnreachable': True}).json()

        self.assertEqual(len(kept['minimised_fsa']['states']), 3)
        self.assertEqual(len(pruned['minimised_fsa']['states']), 2)

        not_pruned = self.post_json(reverse('minimise_dfa'), {'automaton': record, 'pruneUnreachable': False})
        self.assertEqual(len(not_pruned.json()['minimised_fsa']['states']), 3)

    def test_minimise_prune_flag_must_be_boolean(self):
        for flag in ['false', 'true', 1, 0, []]:
            response = self.post_json(reverse('minimise_dfa'),
                                      {'automaton': self.sample_dfa, 'pruneUnreachable': flag})

            self.assertEqual(response.status_code, 400, f"{flag!r} should be rejected")
            self.assertIn('pruneUnreachable', response.json()['error'])

    def test_minimise_nfa_rejected(self):
        response = self.post_json(reverse('minimise_dfa'), {'automaton': self.sample_nfa})

        self.assertEqual(response.status_code, 400)
        self.assertIn('requires a deterministic FSA', response.json()['error'])

    def test_fsa_to_regex(self):
        response = self.post_json(reverse('fsa_to_regex'), {'automaton': self.sample_dfa})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['regex'], '0*1(0|10*1)*')
        self.assertFalse(data['converted_to_dfa'])

    def test_nfa_to_regex(self):
        response = self.post_json(reverse('fsa_to_regex'), {'automaton': self.sample_nfa})

        data = response.json()
        self.assertEqual(data['regex'], 'aa*b')
        self.assertTrue(data['converted_to_dfa'])
