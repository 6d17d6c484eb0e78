from typing import NamedTuple

import numpy as np

from bldcube.errors import InvalidBufferLabel, InvalidMoveToken, InvalidOrientationCount

# Slot order used by every vector in this module
CORNERS = ["UBL", "UBR", "UFR", "UFL", "DFL", "DFR", "DBR", "DBL"]
EDGES = ["UF", "UL", "UB", "UR", "FL", "BL", "BR", "FR", "DF", "DL", "DB", "DR"]

CORNER_BUFFERS = {label: i for i, label in enumerate(CORNERS)}
EDGE_BUFFERS = {label: i for i, label in enumerate(EDGES)}

DEFAULT_EDGE_BUFFER = "UF"
DEFAULT_CORNER_BUFFER = "UFR"

# Define possible moves
MOVE_NAMES = [
    "U", "U'", "U2",
    "D", "D'", "D2",
    "L", "L'", "L2",
    "R", "R'", "R2",
    "F", "F'", "F2",
    "B", "B'", "B2"
]


class Turn(NamedTuple):
    """
    One move as index arrays.

    After the turn, slot i holds what slot ``corner_source[i]`` held before,
    and its orientation is shifted by ``corner_twist[i]`` (mod 3). Edges work
    the same way with ``edge_flip`` (mod 2).
    """
    corner_source: np.ndarray
    corner_twist: np.ndarray
    edge_source: np.ndarray
    edge_flip: np.ndarray


def _turn(corner_source, corner_twist, edge_source, edge_flip):
    return Turn(
        np.array(corner_source),
        np.array(corner_twist),
        np.array(edge_source),
        np.array(edge_flip),
    )


def _compose(first, second):
    """Return the turn equivalent to applying `first` and then `second`."""
    return Turn(
        first.corner_source[second.corner_source],
        (first.corner_twist[second.corner_source] + second.corner_twist) % 3,
        first.edge_source[second.edge_source],
        (first.edge_flip[second.edge_source] + second.edge_flip) % 2,
    )


_NO_TWIST = [0, 0, 0, 0, 0, 0, 0, 0]
_NO_FLIP = [0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0]

# Clockwise quarter turns. U/D/R/L keep edge orientation, only F/B flip.
QUARTER_TURNS = {
    # UFR -> UFL -> UBL -> UBR, UF -> UL -> UB -> UR
    "U": _turn([3, 0, 1, 2, 4, 5, 6, 7], _NO_TWIST,
               [3, 0, 1, 2, 4, 5, 6, 7, 8, 9, 10, 11], _NO_FLIP),
    # DFL -> DFR -> DBR -> DBL, DF -> DR -> DB -> DL
    "D": _turn([0, 1, 2, 3, 7, 4, 5, 6], _NO_TWIST,
               [0, 1, 2, 3, 4, 5, 6, 7, 9, 10, 11, 8], _NO_FLIP),
    # UFL -> UFR -> DFR -> DFL, FL -> UF -> FR -> DF
    "F": _turn([0, 1, 3, 4, 5, 2, 6, 7], [0, 0, 1, 2, 1, 2, 0, 0],
               [4, 1, 2, 3, 8, 5, 6, 0, 7, 9, 10, 11], [1, 0, 0, 0, 1, 0, 0, 1, 1, 0, 0, 0]),
    # UBR -> UBL -> DBL -> DBR, BR -> UB -> BL -> DB
    "B": _turn([1, 6, 2, 3, 4, 5, 7, 0], [1, 2, 0, 0, 0, 0, 1, 2],
               [0, 1, 6, 3, 4, 2, 10, 7, 8, 9, 5, 11], [0, 0, 1, 0, 0, 1, 1, 0, 0, 0, 1, 0]),
    # UFR -> UBR -> DBR -> DFR, FR -> UR -> BR -> DR
    "R": _turn([0, 2, 5, 3, 4, 6, 1, 7], [0, 1, 2, 0, 0, 1, 2, 0],
               [0, 1, 2, 7, 4, 5, 3, 11, 8, 9, 10, 6], _NO_FLIP),
    # UBL -> UFL -> DFL -> DBL, BL -> UL -> FL -> DL
    "L": _turn([7, 1, 2, 0, 3, 5, 6, 4], [2, 0, 0, 1, 2, 0, 0, 1],
               [0, 5, 2, 3, 1, 9, 6, 7, 8, 4, 10, 11], _NO_FLIP),
}


def _build_move_table():
    moves = {}
    for face, quarter in QUARTER_TURNS.items():
        double = _compose(quarter, quarter)
        moves[face] = quarter
        moves[face + "2"] = double
        moves[face + "'"] = _compose(double, quarter)
    return moves


MOVES = _build_move_table()

_ORIENTATION_COSTS = {0: 0, 1: 1, 2: 2, 3: 2, 4: 2, 5: 3, 6: 4, 7: 4, 8: 4, 9: 5, 10: 6, 11: 6}


def orientation_cost(count):
    """
    Number of algs needed to fix `count` pieces that are home but misoriented.

    Defined for 0 to 11 pieces: 1 piece is one alg, 2-4 pieces two algs,
    5 three, 6-8 four, 9 five and 10-11 six.
    """
    try:
        return _ORIENTATION_COSTS[count]
    except (KeyError, TypeError):
        raise InvalidOrientationCount(count) from None


def edge_buffer_index(label):
    """Slot index of an edge buffer label such as "UF"."""
    try:
        return EDGE_BUFFERS[label]
    except (KeyError, TypeError):
        raise InvalidBufferLabel(label, "edge") from None


def corner_buffer_index(label):
    """Slot index of a corner buffer label such as "UFR"."""
    try:
        return CORNER_BUFFERS[label]
    except (KeyError, TypeError):
        raise InvalidBufferLabel(label, "corner") from None


def solve_cycles(permutation, orientation, buffer, base):
    """
    Count the targets a 3-style solve of one piece type needs.

    The piece in the buffer is swapped into its home slot one target at a time
    until the whole permutation is solved. When the buffer piece itself comes
    home, a new cycle is started at the lowest unsolved slot. If that happens
    before any target has been shot and the buffer piece is oriented, the
    buffer moves to that slot instead (a float) and no target is spent.

    Orientation travels with the swaps: the target slot ends up oriented and
    its twist/flip is added to the buffer.

    The arguments are copied, never modified.

    Args:
        permutation: piece currently in each slot
        orientation: orientation of the piece in each slot
        buffer: slot index the solve starts from
        base: 2 for edges, 3 for corners

    Returns:
        tuple: (targets, can_float)

    Raises:
        ValueError: if `permutation` is not a permutation of its slots
    """
    perm = np.array(permutation, copy=True)
    ori = np.array(orientation, copy=True)
    home = np.arange(len(perm))
    if not np.array_equal(np.sort(perm), home):
        raise ValueError(f"Not a permutation: {perm.tolist()}")

    targets = 0
    can_float = False

    while not np.array_equal(perm, home):
        if perm[buffer] == buffer:
            first_unsolved = int(np.flatnonzero(perm != home)[0])
            if targets == 0 and ori[buffer] == 0:
                can_float = True
                buffer = first_unsolved
                continue
            # Cycle break
            target = first_unsolved
        else:
            target = int(perm[buffer])

        perm[buffer], perm[target] = perm[target], perm[buffer]
        ori[buffer] = (ori[buffer] + ori[target]) % base
        ori[target] = 0
        targets += 1

    return targets, can_float


class Metrics(NamedTuple):
    """What a blindfolded solve of one scramble costs."""
    algorithm_count: int
    has_parity: bool
    flip_count: int
    twist_count: int
    can_float_edges: bool
    can_float_corners: bool
    edge_targets: int
    corner_targets: int


def _permutation(values, size):
    if values is None:
        return np.arange(size)
    vector = np.array(values, dtype=int)
    if vector.shape != (size,):
        raise ValueError(f"Expected {size} values, got {vector.size}")
    if not np.array_equal(np.sort(vector), np.arange(size)):
        raise ValueError(f"Not a permutation of 0..{size - 1}: {vector.tolist()}")
    return vector


def _orientation(values, size, base):
    if values is None:
        return np.zeros(size, dtype=int)
    vector = np.array(values, dtype=int)
    if vector.shape != (size,):
        raise ValueError(f"Expected {size} values, got {vector.size}")
    if ((vector < 0) | (vector >= base)).any():
        raise ValueError(f"Orientation values must be in 0..{base - 1}: {vector.tolist()}")
    return vector


class CubeState:
    """
    A 3x3 cube stored as corner and edge permutation/orientation vectors.

    Corner slots are ordered UBL UBR UFR UFL DFL DFR DBR DBL and edge slots
    UF UL UB UR FL BL BR FR DF DL DB DR. ``corner_permutation[i]`` is the
    piece currently in slot i, so a solved vector reads 0, 1, 2, ...

    Corner orientation is 0 (oriented), 1 (clockwise) or 2 (counterclockwise)
    relative to U/D. Edge orientation is 0 (oriented) or 1 (flipped), using F/B
    edge orientation.
    """

    def __init__(self, corner_permutation=None, corner_orientation=None,
                 edge_permutation=None, edge_orientation=None):
        self.corner_permutation = _permutation(corner_permutation, 8)
        self.corner_orientation = _orientation(corner_orientation, 8, 3)
        self.edge_permutation = _permutation(edge_permutation, 12)
        self.edge_orientation = _orientation(edge_orientation, 12, 2)

    def copy(self):
        """Create a deep copy of the cube state."""
        return CubeState(
            self.corner_permutation.copy(),
            self.corner_orientation.copy(),
            self.edge_permutation.copy(),
            self.edge_orientation.copy(),
        )

    def __eq__(self, other):
        if not isinstance(other, CubeState):
            return NotImplemented
        return (np.array_equal(self.corner_permutation, other.corner_permutation)
                and np.array_equal(self.corner_orientation, other.corner_orientation)
                and np.array_equal(self.edge_permutation, other.edge_permutation)
                and np.array_equal(self.edge_orientation, other.edge_orientation))

    def __repr__(self):
        return (f"CubeState(cp={self.corner_permutation.tolist()}, "
                f"co={self.corner_orientation.tolist()}, "
                f"ep={self.edge_permutation.tolist()}, "
                f"eo={self.edge_orientation.tolist()})")

    def __str__(self):
        """Return each slot with the piece sitting in it and its orientation."""
        corners = " ".join(
            f"{slot}:{CORNERS[piece]}{ori}"
            for slot, piece, ori in zip(CORNERS, self.corner_permutation, self.corner_orientation)
        )
        edges = " ".join(
            f"{slot}:{EDGES[piece]}{ori}"
            for slot, piece, ori in zip(EDGES, self.edge_permutation, self.edge_orientation)
        )
        return f"corners {corners}\nedges   {edges}"

    def apply_move(self, move):
        """Apply a single move token such as "R", "U2" or "F'"."""
        try:
            turn = MOVES[move]
        except (KeyError, TypeError):
            raise InvalidMoveToken(move) from None

        self.corner_permutation = self.corner_permutation[turn.corner_source]
        self.corner_orientation = (self.corner_orientation[turn.corner_source] + turn.corner_twist) % 3
        self.edge_permutation = self.edge_permutation[turn.edge_source]
        self.edge_orientation = (self.edge_orientation[turn.edge_source] + turn.edge_flip) % 2
        return self

    def apply_algorithm(self, algorithm):
        """
        Apply a sequence of moves from a string notation.

        Examples:
        - "R U R'" applies R, then U, then R'
        - "F2 B2 L' D" applies F2, then B2, then L', then D

        The whole sequence is checked first, so a bad token leaves the state
        untouched.

        Raises:
            InvalidMoveToken: for anything outside the 18 face turns
        """
        moves = algorithm.split()
        for move in moves:
            if move not in MOVES:
                raise InvalidMoveToken(move)

        for move in moves:
            self.apply_move(move)
        return self

    def U(self):
        """Up face clockwise."""
        return self.apply_move("U")

    def U_prime(self):
        """Up face counterclockwise."""
        return self.apply_move("U'")

    def U2(self):
        """Up face 180 degrees."""
        return self.apply_move("U2")

    def D(self):
        """Down face clockwise."""
        return self.apply_move("D")

    def D_prime(self):
        """Down face counterclockwise."""
        return self.apply_move("D'")

    def D2(self):
        """Down face 180 degrees."""
        return self.apply_move("D2")

    def L(self):
        """Left face clockwise."""
        return self.apply_move("L")

    def L_prime(self):
        """Left face counterclockwise."""
        return self.apply_move("L'")

    def L2(self):
        """Left face 180 degrees."""
        return self.apply_move("L2")

    def R(self):
        """Right face clockwise."""
        return self.apply_move("R")

    def R_prime(self):
        """Right face counterclockwise."""
        return self.apply_move("R'")

    def R2(self):
        """Right face 180 degrees."""
        return self.apply_move("R2")

    def F(self):
        """Front face clockwise."""
        return self.apply_move("F")

    def F_prime(self):
        """Front face counterclockwise."""
        return self.apply_move("F'")

    def F2(self):
        """Front face 180 degrees."""
        return self.apply_move("F2")

    def B(self):
        """Back face clockwise."""
        return self.apply_move("B")

    def B_prime(self):
        """Back face counterclockwise."""
        return self.apply_move("B'")

    def B2(self):
        """Back face 180 degrees."""
        return self.apply_move("B2")

    def is_solved(self):
        """Check if every piece is home and oriented."""
        return (np.array_equal(self.corner_permutation, np.arange(8))
                and np.array_equal(self.edge_permutation, np.arange(12))
                and not self.corner_orientation.any()
                and not self.edge_orientation.any())

    def flip_count(self, edge_buffer=DEFAULT_EDGE_BUFFER):
        """Edges, other than the buffer, that are home but flipped."""
        flipped = (self.edge_orientation != 0) & (self.edge_permutation == np.arange(12))
        flipped[edge_buffer_index(edge_buffer)] = False
        return int(flipped.sum())

    def twist_count(self, corner_buffer=DEFAULT_CORNER_BUFFER):
        """Corners, other than the buffer, that are home but twisted."""
        twisted = (self.corner_orientation != 0) & (self.corner_permutation == np.arange(8))
        twisted[corner_buffer_index(corner_buffer)] = False
        return int(twisted.sum())

    def compute_metrics(self, edge_buffer=DEFAULT_EDGE_BUFFER, corner_buffer=DEFAULT_CORNER_BUFFER):
        """
        Work out how many algs a blindfolded solve of this state takes.

        The state itself is not modified, so this can be called repeatedly.

        Raises:
            InvalidBufferLabel: if either buffer is not a known slot name
        """
        edge_pos = edge_buffer_index(edge_buffer)
        corner_pos = corner_buffer_index(corner_buffer)

        flips = self.flip_count(edge_buffer)
        twists = self.twist_count(corner_buffer)

        edge_targets, can_float_edges = solve_cycles(
            self.edge_permutation, self.edge_orientation, edge_pos, 2)
        corner_targets, can_float_corners = solve_cycles(
            self.corner_permutation, self.corner_orientation, corner_pos, 3)

        # Two targets per alg; with parity both counts are odd and the
        # leftover pair is the parity alg
        algorithm_count = (edge_targets + corner_targets) // 2
        algorithm_count += orientation_cost(flips) + orientation_cost(twists)

        return Metrics(
            algorithm_count=algorithm_count,
            has_parity=edge_targets % 2 == 1,
            flip_count=flips,
            twist_count=twists,
            can_float_edges=can_float_edges,
            can_float_corners=can_float_corners,
            edge_targets=edge_targets,
            corner_targets=corner_targets,
        )
