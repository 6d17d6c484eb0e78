import argparse
import json
import random
import sys
import time
from dataclasses import dataclass
from functools import partial

import numpy as np

from bldcube.cube import (
    CORNERS,
    DEFAULT_CORNER_BUFFER,
    DEFAULT_EDGE_BUFFER,
    EDGES,
    corner_buffer_index,
    edge_buffer_index,
)
from bldcube.errors import ScrambleError
from bldcube.scramble_filter import Criteria, evaluate, scramble_matches
from bldcube.scrambler import fetch_scrambles

TIMEOUT = 60  # seconds
MAX_CUSTOM = 50
MAX_RANDOM = 100
# Candidates fetched per custom scramble still missing
BATCH_FACTOR = 2

TIMEOUT_HINT = (
    "Failed to generate all requested custom scrambles. This likely means the request timed out. "
    "Try setting easier parameters or generating fewer custom scrambles."
)


@dataclass
class GenerationResult:
    random_scrambles: list
    custom: list
    requested: int
    checked: int
    skipped: int
    elapsed_ms: int

    @property
    def complete(self):
        """True if every requested custom scramble was found before the timeout."""
        return len(self.custom) >= self.requested

    def status_message(self):
        message = (
            f"Checked {self.checked} scramble(s) ({self.elapsed_ms / 1000}s) and found "
            f"{len(self.custom)} scramble(s) that match the desired criteria as well as "
            f"{len(self.random_scrambles)} random scrambles."
        )
        if not self.complete:
            message += "\n" + TIMEOUT_HINT
        return message

    def tagged(self, seed=None):
        """(scramble, is_custom) pairs for random and custom scrambles, shuffled together."""
        pairs = [(s, False) for s in self.random_scrambles] + [(s, True) for s in self.custom]
        random.Random(seed).shuffle(pairs)
        return pairs

    def mixed(self, seed=None):
        """Random and custom scrambles shuffled together."""
        return [scramble for scramble, _ in self.tagged(seed)]


def generate_scrambles(num_custom, num_random, edge_buffer=DEFAULT_EDGE_BUFFER,
                       corner_buffer=DEFAULT_CORNER_BUFFER, criteria=None, timeout=TIMEOUT,
                       fetch=fetch_scrambles, clock=time.monotonic, verbose=False):
    """
    Fetch random scrambles and filter candidates until enough custom ones match.

    Candidates are fetched in batches of twice the number of custom scrambles
    still missing. The time budget is checked between batches only, so a
    batch that is already running is always finished. Running out of time is
    not an error: the result just holds fewer custom scrambles than requested.

    Args:
        num_custom: Number of scrambles that must match `criteria`
        num_random: Number of unfiltered scrambles
        edge_buffer: Edge buffer label
        corner_buffer: Corner buffer label
        criteria: Criteria to match, None accepts every candidate
        timeout: Time budget in seconds
        fetch: Callable returning a list of `n` scramble strings
        clock: Callable returning the current time in seconds
        verbose: Print progress after every batch

    Returns:
        GenerationResult
    """
    if not 0 <= num_custom <= MAX_CUSTOM:
        raise ValueError(f"Number of custom scrambles must be between 0 and {MAX_CUSTOM}, got {num_custom}")
    if not 0 <= num_random <= MAX_RANDOM:
        raise ValueError(f"Number of random scrambles must be between 0 and {MAX_RANDOM}, got {num_random}")

    # A bad buffer would fail every candidate, so reject it up front
    edge_buffer_index(edge_buffer)
    corner_buffer_index(corner_buffer)

    start_time = clock()

    random_scrambles = list(fetch(num_random)) if num_random else []
    custom = []
    checked = num_random
    skipped = 0

    while len(custom) < num_custom:
        batch_size = BATCH_FACTOR * (num_custom - len(custom))
        for candidate in fetch(batch_size):
            checked += 1
            try:
                passes = scramble_matches(candidate, edge_buffer, corner_buffer, criteria)
            except ScrambleError as e:
                skipped += 1
                if verbose:
                    print(f"Skipping candidate {candidate!r}: {e}")
                continue

            if passes:
                custom.append(candidate)
                if len(custom) >= num_custom:
                    break

        if verbose:
            print(f"Checked {checked} scrambles, found {len(custom)}/{num_custom} matches so far")

        # Exit if timeout
        if clock() - start_time >= timeout:
            break

    elapsed_ms = round((clock() - start_time) * 1000)

    return GenerationResult(
        random_scrambles=random_scrambles,
        custom=custom,
        requested=num_custom,
        checked=checked,
        skipped=skipped,
        elapsed_ms=elapsed_ms,
    )


def scramble_records(result, seed=None, edge_buffer=DEFAULT_EDGE_BUFFER, corner_buffer=DEFAULT_CORNER_BUFFER):
    """One JSON-ready dict per scramble, in `mixed(seed)` order, with its metrics and whether it was filtered."""
    records = []
    for scramble, custom in result.tagged(seed):
        record = {"scramble": scramble, "custom": custom}
        record.update(evaluate(scramble, edge_buffer, corner_buffer)._asdict())
        records.append(record)
    return records


def _optional_int(value):
    if value.lower() == "any":
        return None
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer or 'any', got {value!r}")


def _optional_bool(value):
    lowered = value.lower()
    if lowered == "any":
        return None
    if lowered in ("true", "false"):
        return lowered == "true"
    raise argparse.ArgumentTypeError(f"expected 'true', 'false' or 'any', got {value!r}")


def build_parser():
    parser = argparse.ArgumentParser(
        description='Generate random-state 3x3 scrambles that match blindfolded solving criteria')

    parser.add_argument('--custom', type=int, default=1,
                        help=f'Number of scrambles matching the criteria (0-{MAX_CUSTOM})')
    parser.add_argument('--random', type=int, default=0,
                        help=f'Number of unfiltered random scrambles mixed in (0-{MAX_RANDOM})')
    parser.add_argument('--edge-buffer', choices=EDGES, default=DEFAULT_EDGE_BUFFER,
                        help='Edge buffer')
    parser.add_argument('--corner-buffer', choices=CORNERS, default=DEFAULT_CORNER_BUFFER,
                        help='Corner buffer')

    # Criteria, "any" disables a check
    parser.add_argument('--algs', type=_optional_int, default=None,
                        help='Number of algs including parity and twists/flips')
    parser.add_argument('--flips', type=_optional_int, default=None,
                        help='Number of flipped edges, not counting the buffer')
    parser.add_argument('--twists', type=_optional_int, default=None,
                        help='Number of twisted corners, not counting the buffer')
    parser.add_argument('--parity', type=_optional_bool, default=None,
                        help='Whether the scramble has parity (true/false/any)')
    parser.add_argument('--float-edges', type=_optional_bool, default=None,
                        help='Whether the edge buffer can float (true/false/any)')
    parser.add_argument('--float-corners', type=_optional_bool, default=None,
                        help='Whether the corner buffer can float (true/false/any)')

    parser.add_argument('--timeout', type=float, default=TIMEOUT,
                        help='Time budget in seconds')
    parser.add_argument('--processes', type=int, default=1,
                        help='Worker processes used to generate candidates')
    parser.add_argument('--seed', type=int, default=None,
                        help='Seed for reproducible output')
    parser.add_argument('--output', type=str,
                        help='Write scrambles to this file instead of stdout')
    parser.add_argument('--json', action='store_true',
                        help='Write one JSON object with metrics per scramble')
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not 0 <= args.custom <= MAX_CUSTOM:
        parser.error(f"--custom must be between 0 and {MAX_CUSTOM}")
    if not 0 <= args.random <= MAX_RANDOM:
        parser.error(f"--random must be between 0 and {MAX_RANDOM}")

    criteria = Criteria(
        algorithm_count=args.algs,
        flip_count=args.flips,
        twist_count=args.twists,
        has_parity=args.parity,
        can_float_edges=args.float_edges,
        can_float_corners=args.float_corners,
    )
    fetch = partial(fetch_scrambles, processes=args.processes, rng=np.random.default_rng(args.seed))

    print("Generating scrambles...")
    result = generate_scrambles(
        args.custom,
        args.random,
        edge_buffer=args.edge_buffer,
        corner_buffer=args.corner_buffer,
        criteria=criteria,
        timeout=args.timeout,
        fetch=fetch,
        verbose=True,
    )
    print(result.status_message())

    if args.json:
        lines = [json.dumps(record) for record in
                 scramble_records(result, args.seed, args.edge_buffer, args.corner_buffer)]
    else:
        lines = result.mixed(args.seed)

    if args.output:
        with open(args.output, "w") as f:
            for line in lines:
                f.write(line + "\n")
        print(f"Results saved to {args.output}")
    else:
        print()
        print("\n".join(lines))

    return 0 if result.complete else 1


if __name__ == "__main__":
    sys.exit(main())
