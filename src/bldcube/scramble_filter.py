from dataclasses import dataclass, fields
from typing import Optional

from bldcube.cube import DEFAULT_CORNER_BUFFER, DEFAULT_EDGE_BUFFER, CubeState


@dataclass(frozen=True)
class Criteria:
    """
    What a custom scramble has to look like.

    Every field is optional; ``None`` means "any" and always passes.
    """
    algorithm_count: Optional[int] = None
    flip_count: Optional[int] = None
    twist_count: Optional[int] = None
    has_parity: Optional[bool] = None
    can_float_edges: Optional[bool] = None
    can_float_corners: Optional[bool] = None

    def is_any(self):
        """True when no field is set, i.e. every scramble passes."""
        return all(getattr(self, f.name) is None for f in fields(self))

    def matches(self, metrics):
        """Check the metrics of one scramble against every field that is set."""
        for f in fields(self):
            wanted = getattr(self, f.name)
            if wanted is not None and getattr(metrics, f.name) != wanted:
                return False
        return True


def evaluate(scramble, edge_buffer=DEFAULT_EDGE_BUFFER, corner_buffer=DEFAULT_CORNER_BUFFER):
    """Apply `scramble` to a solved cube and return its metrics."""
    cube = CubeState()
    cube.apply_algorithm(scramble)
    return cube.compute_metrics(edge_buffer, corner_buffer)


def scramble_matches(scramble, edge_buffer=DEFAULT_EDGE_BUFFER, corner_buffer=DEFAULT_CORNER_BUFFER,
                     criteria=None):
    """
    Decide whether one scramble satisfies the criteria.

    Args:
        scramble: whitespace separated move sequence
        edge_buffer: edge buffer label, e.g. "UF"
        corner_buffer: corner buffer label, e.g. "UFR"
        criteria: Criteria to match, or None to accept everything

    Returns:
        bool: True if every criterion that is set matches

    Raises:
        InvalidMoveToken: if the scramble contains an unknown move
        InvalidBufferLabel: if a buffer label is unknown
    """
    metrics = evaluate(scramble, edge_buffer, corner_buffer)
    if criteria is None:
        return True
    return criteria.matches(metrics)
