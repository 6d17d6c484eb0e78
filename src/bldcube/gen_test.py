import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from itertools import cycle
from unittest import mock

from bldcube import gen
from bldcube.errors import InvalidBufferLabel
from bldcube.scramble_filter import Criteria

SEXY_MOVE = "R U R' U'"


class FakeSource:
    """Hands out scrambles from a fixed list, in a loop, and records batch sizes."""

    def __init__(self, scrambles):
        self.scrambles = cycle(scrambles)
        self.batches = []

    def __call__(self, count, **kwargs):
        self.batches.append(count)
        return [next(self.scrambles) for _ in range(count)]


class FakeClock:
    def __init__(self, step):
        self.now = 0.0
        self.step = step

    def __call__(self):
        self.now += self.step
        return self.now


class TestGenerateScrambles(unittest.TestCase):

    def test_quota_met_in_one_batch(self):
        source = FakeSource(["U", SEXY_MOVE])
        result = gen.generate_scrambles(2, 0, criteria=Criteria(has_parity=True), fetch=source)
        self.assertEqual(result.custom, ["U", "U"])
        self.assertEqual(source.batches, [4])
        # The batch stops as soon as the quota is met
        self.assertEqual(result.checked, 3)
        self.assertTrue(result.complete)

    def test_batch_size_follows_remaining_quota(self):
        source = FakeSource(["U", SEXY_MOVE, SEXY_MOVE, SEXY_MOVE])
        result = gen.generate_scrambles(2, 0, criteria=Criteria(has_parity=True), fetch=source)
        self.assertEqual(source.batches, [4, 2])
        self.assertEqual(result.checked, 5)
        self.assertEqual(len(result.custom), 2)

    def test_random_scrambles_are_not_filtered(self):
        source = FakeSource([SEXY_MOVE, "U"])
        result = gen.generate_scrambles(1, 2, criteria=Criteria(has_parity=True), fetch=source)
        self.assertEqual(result.random_scrambles, [SEXY_MOVE, "U"])
        self.assertEqual(result.custom, ["U"])
        # Random scrambles count as checked
        self.assertEqual(result.checked, 4)

    def test_no_custom_scrambles(self):
        source = FakeSource([SEXY_MOVE])
        result = gen.generate_scrambles(0, 3, fetch=source)
        self.assertEqual(source.batches, [3])
        self.assertEqual(result.custom, [])
        self.assertTrue(result.complete)

    def test_timeout_returns_partial_result(self):
        source = FakeSource([SEXY_MOVE])
        result = gen.generate_scrambles(
            3, 0, criteria=Criteria(algorithm_count=99), timeout=60,
            fetch=source, clock=FakeClock(step=100))
        self.assertEqual(result.custom, [])
        self.assertFalse(result.complete)
        # The first batch runs to completion before the budget is checked
        self.assertEqual(source.batches, [6])
        self.assertEqual(result.checked, 6)
        self.assertIn(gen.TIMEOUT_HINT, result.status_message())

    def test_invalid_candidates_are_skipped(self):
        source = FakeSource(["R X", "U"])
        result = gen.generate_scrambles(1, 0, fetch=source)
        self.assertEqual(result.custom, ["U"])
        self.assertEqual(result.skipped, 1)
        self.assertEqual(result.checked, 2)

    def test_invalid_buffer_fails_before_fetching(self):
        source = FakeSource([SEXY_MOVE])
        with self.assertRaises(InvalidBufferLabel):
            gen.generate_scrambles(1, 1, edge_buffer="UFR", fetch=source)
        self.assertEqual(source.batches, [])

    def test_limits(self):
        source = FakeSource([SEXY_MOVE])
        with self.assertRaises(ValueError):
            gen.generate_scrambles(gen.MAX_CUSTOM + 1, 0, fetch=source)
        with self.assertRaises(ValueError):
            gen.generate_scrambles(1, -1, fetch=source)

    def test_verbose_prints_progress(self):
        source = FakeSource(["R X", "U"])
        out = io.StringIO()
        with redirect_stdout(out):
            gen.generate_scrambles(1, 0, fetch=source, verbose=True)
        self.assertIn("Skipping candidate 'R X'", out.getvalue())
        self.assertIn("found 1/1 matches", out.getvalue())


class TestGenerationResult(unittest.TestCase):

    def test_status_message(self):
        result = gen.GenerationResult(
            random_scrambles=["U"], custom=["R"], requested=1, checked=12, skipped=0, elapsed_ms=1500)
        self.assertEqual(
            result.status_message(),
            "Checked 12 scramble(s) (1.5s) and found 1 scramble(s) that match the desired "
            "criteria as well as 1 random scrambles.")

    def test_mixed(self):
        result = gen.GenerationResult(
            random_scrambles=["U", "D"], custom=["R", "L", "F"], requested=3, checked=5, skipped=0, elapsed_ms=1)
        mixed = result.mixed(seed=1)
        self.assertEqual(sorted(mixed), ["D", "F", "L", "R", "U"])
        self.assertEqual(mixed, result.mixed(seed=1))
        # The lists themselves are left alone
        self.assertEqual(result.random_scrambles, ["U", "D"])

    def test_scramble_records(self):
        result = gen.GenerationResult(
            random_scrambles=["U"], custom=[SEXY_MOVE], requested=1, checked=2, skipped=0, elapsed_ms=1)
        records = gen.scramble_records(result, seed=4)
        self.assertEqual([r["scramble"] for r in records], result.mixed(seed=4))
        by_scramble = {r["scramble"]: r for r in records}
        self.assertTrue(by_scramble[SEXY_MOVE]["custom"])
        self.assertEqual(by_scramble[SEXY_MOVE]["algorithm_count"], 3)
        self.assertFalse(by_scramble["U"]["custom"])
        self.assertTrue(by_scramble["U"]["has_parity"])
        json.dumps(records)

    def test_records_keep_origin_of_duplicate_scrambles(self):
        result = gen.GenerationResult(
            random_scrambles=["U", "R"], custom=["U"], requested=1, checked=3, skipped=0, elapsed_ms=1)
        records = gen.scramble_records(result, seed=0)
        flags = sorted((r["scramble"], r["custom"]) for r in records)
        self.assertEqual(flags, [("R", False), ("U", False), ("U", True)])

    def test_tagged(self):
        result = gen.GenerationResult(
            random_scrambles=["D"], custom=["F"], requested=1, checked=2, skipped=0, elapsed_ms=1)
        self.assertEqual(sorted(result.tagged(seed=2)), [("D", False), ("F", True)])


class TestMain(unittest.TestCase):

    def run_main(self, argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = gen.main(argv)
        return code, out.getvalue()

    def test_writes_output_file(self):
        source = FakeSource([SEXY_MOVE, "U"])
        with tempfile.TemporaryDirectory() as tmp, mock.patch.object(gen, "fetch_scrambles", source):
            path = os.path.join(tmp, "scrambles.txt")
            code, out = self.run_main(["--custom", "2", "--parity", "true", "--output", path])
            with open(path) as f:
                lines = f.read().splitlines()
        self.assertEqual(code, 0)
        self.assertEqual(lines, ["U", "U"])
        self.assertIn("found 2 scramble(s)", out)

    def test_json_output(self):
        source = FakeSource([SEXY_MOVE])
        with mock.patch.object(gen, "fetch_scrambles", source):
            code, out = self.run_main(["--custom", "1", "--algs", "3", "--float-edges", "true", "--json"])
        self.assertEqual(code, 0)
        record = json.loads(out.strip().splitlines()[-1])
        self.assertEqual(record["scramble"], SEXY_MOVE)
        self.assertTrue(record["custom"])

    def test_incomplete_run_exits_with_one(self):
        source = FakeSource([SEXY_MOVE])
        with mock.patch.object(gen, "fetch_scrambles", source):
            code, out = self.run_main(["--custom", "1", "--algs", "12", "--timeout", "0"])
        self.assertEqual(code, 1)
        self.assertIn(gen.TIMEOUT_HINT, out)

    def test_any_is_accepted(self):
        source = FakeSource([SEXY_MOVE])
        with mock.patch.object(gen, "fetch_scrambles", source):
            code, _ = self.run_main(["--custom", "1", "--algs", "any", "--parity", "ANY"])
        self.assertEqual(code, 0)

    def test_bad_arguments(self):
        for argv in (["--custom", "51"], ["--random", "101"], ["--parity", "maybe"],
                     ["--flips", "lots"], ["--edge-buffer", "UFR"]):
            with self.assertRaises(SystemExit) as ctx:
                self.run_main(argv)
            self.assertEqual(ctx.exception.code, 2)


if __name__ == "__main__":
    unittest.main()
