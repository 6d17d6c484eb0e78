import unittest

from bldcube.cube import Metrics
from bldcube.errors import InvalidBufferLabel, InvalidMoveToken
from bldcube.scramble_filter import Criteria, evaluate, scramble_matches


class TestCriteria(unittest.TestCase):

    def setUp(self):
        self.metrics = Metrics(
            algorithm_count=7,
            has_parity=True,
            flip_count=1,
            twist_count=0,
            can_float_edges=False,
            can_float_corners=True,
            edge_targets=7,
            corner_targets=5,
        )

    def test_single_field(self):
        self.assertTrue(Criteria(algorithm_count=7).matches(self.metrics))
        self.assertFalse(Criteria(algorithm_count=8).matches(self.metrics))

    def test_all_fields_must_match(self):
        self.assertFalse(Criteria(algorithm_count=7, has_parity=False).matches(self.metrics))
        self.assertTrue(Criteria(algorithm_count=7, has_parity=True, flip_count=1).matches(self.metrics))

    def test_empty_criteria_always_pass(self):
        self.assertTrue(Criteria().is_any())
        self.assertTrue(Criteria().matches(self.metrics))
        self.assertTrue(Criteria().matches(Metrics(0, False, 0, 0, False, False, 0, 0)))

    def test_false_and_zero_are_real_criteria(self):
        criteria = Criteria(twist_count=0, can_float_edges=False)
        self.assertFalse(criteria.is_any())
        self.assertTrue(criteria.matches(self.metrics))
        self.assertFalse(Criteria(can_float_corners=False).matches(self.metrics))
        self.assertFalse(Criteria(flip_count=0).matches(self.metrics))


class TestScrambleMatches(unittest.TestCase):

    def test_evaluate(self):
        metrics = evaluate("R U R' U'", "UF", "UFR")
        self.assertEqual(metrics.algorithm_count, 3)
        self.assertFalse(metrics.has_parity)
        self.assertTrue(metrics.can_float_edges)
        self.assertFalse(metrics.can_float_corners)

    def test_matches(self):
        criteria = Criteria(algorithm_count=3, has_parity=False, can_float_edges=True)
        self.assertTrue(scramble_matches("R U R' U'", "UF", "UFR", criteria))
        self.assertFalse(scramble_matches("R U R' U'", "UF", "UFR", Criteria(can_float_corners=True)))
        self.assertTrue(scramble_matches("U", "UF", "UFR", Criteria(has_parity=True)))

    def test_no_criteria(self):
        self.assertTrue(scramble_matches("R U R' U'", "UF", "UFR"))
        self.assertTrue(scramble_matches("R U R' U'", "UF", "UFR", Criteria()))

    def test_buffer_choice_changes_result(self):
        # UF is not touched by R, so it floats; UR is part of the cycle
        self.assertTrue(scramble_matches("R", "UF", "UFR", Criteria(can_float_edges=True)))
        self.assertFalse(scramble_matches("R", "UR", "UFR", Criteria(can_float_edges=True)))

    def test_invalid_move_propagates(self):
        with self.assertRaises(InvalidMoveToken):
            scramble_matches("R U R' Z", "UF", "UFR", Criteria())

    def test_invalid_buffer_propagates(self):
        with self.assertRaises(InvalidBufferLabel):
            scramble_matches("R U R' U'", "FU", "UFR")


if __name__ == "__main__":
    unittest.main()
