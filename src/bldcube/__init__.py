from bldcube.cube import CubeState, Metrics, orientation_cost, solve_cycles
from bldcube.errors import InvalidBufferLabel, InvalidMoveToken, InvalidOrientationCount, ScrambleError
from bldcube.scramble_filter import Criteria, evaluate, scramble_matches

__all__ = [
    "CubeState",
    "Criteria",
    "InvalidBufferLabel",
    "InvalidMoveToken",
    "InvalidOrientationCount",
    "Metrics",
    "ScrambleError",
    "evaluate",
    "orientation_cost",
    "scramble_matches",
    "solve_cycles",
]
