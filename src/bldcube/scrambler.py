"""
Random-state scrambles.

A uniformly random legal cube is built at the cubie level, written out as a
facelet string, solved with kociemba and the solution is inverted. The result
is a ~20 move scramble for a random state.
"""
import multiprocessing as mp

import kociemba as koc
import numpy as np

FACES = "URFDLB"


def _facelet(name):
    """Index of a facelet such as "R3" in the 54 character facelet string."""
    return FACES.index(name[0]) * 9 + int(name[1]) - 1


# Cubies in kociemba's order: URF UFL ULB UBR DFR DLF DBL DRB and
# UR UF UL UB DR DF DL DB FR FL BL BR. Colors are listed clockwise starting
# from the U/D sticker, facelets in the same order.
CORNER_COLORS = ["URF", "UFL", "ULB", "UBR", "DFR", "DLF", "DBL", "DRB"]
CORNER_FACELETS = [
    [_facelet(name) for name in stickers.split()]
    for stickers in ("U9 R1 F3", "U7 F1 L3", "U1 L1 B3", "U3 B1 R3",
                     "D3 F9 R7", "D1 L9 F7", "D7 B9 L7", "D9 R9 B7")
]
EDGE_COLORS = ["UR", "UF", "UL", "UB", "DR", "DF", "DL", "DB", "FR", "FL", "BL", "BR"]
EDGE_FACELETS = [
    [_facelet(name) for name in stickers.split()]
    for stickers in ("U6 R2", "U8 F2", "U4 L2", "U2 B2", "D6 R8", "D2 F8",
                     "D4 L8", "D8 B8", "F6 R4", "F4 L6", "B6 L4", "B4 R6")
]


def permutation_parity(perm):
    """0 for an even permutation, 1 for an odd one."""
    inversions = sum(
        1
        for i in range(len(perm))
        for j in range(i + 1, len(perm))
        if perm[i] > perm[j]
    )
    return inversions % 2


def random_state(rng=None):
    """
    Generate a uniformly random solvable cube.

    Args:
        rng: numpy Generator, seed or None

    Returns:
        tuple: (corner_permutation, corner_orientation, edge_permutation, edge_orientation)
        in kociemba's cubie order
    """
    rng = np.random.default_rng(rng)

    cp = rng.permutation(8)
    ep = rng.permutation(12)
    # Corner and edge permutation parity must agree
    if permutation_parity(cp) != permutation_parity(ep):
        ep[[10, 11]] = ep[[11, 10]]

    # The last twist/flip is forced by the others
    co = rng.integers(0, 3, size=8)
    co[7] = -co[:7].sum() % 3
    eo = rng.integers(0, 2, size=12)
    eo[11] = eo[:11].sum() % 2

    return cp, co, ep, eo


def to_facelets(cp, co, ep, eo):
    """Build the 54 character URFDLB facelet string kociemba expects."""
    facelets = [""] * 54
    for face in FACES:
        facelets[_facelet(face + "5")] = face

    for slot in range(8):
        piece, ori = cp[slot], co[slot]
        for n in range(3):
            facelets[CORNER_FACELETS[slot][(n + ori) % 3]] = CORNER_COLORS[piece][n]

    for slot in range(12):
        piece, ori = ep[slot], eo[slot]
        for n in range(2):
            facelets[EDGE_FACELETS[slot][(n + ori) % 2]] = EDGE_COLORS[piece][n]

    return "".join(facelets)


def invert_sequence(sequence):
    """Return the move sequence that undoes `sequence`."""
    inverted = []
    for move in reversed(sequence.split()):
        if move.endswith("'"):
            inverted.append(move[:-1])
        elif move.endswith("2"):
            inverted.append(move)
        else:
            inverted.append(move + "'")
    return " ".join(inverted)


def random_state_scramble(rng=None):
    """Return a scramble string that produces a random state."""
    solution = koc.solve(to_facelets(*random_state(rng)))
    return invert_sequence(solution)


def fetch_scrambles(count, processes=None, rng=None):
    """
    Generate `count` random-state scrambles.

    Kociemba searches are CPU bound, so with ``processes > 1`` the batch is
    spread over a multiprocessing pool.
    """
    rng = np.random.default_rng(rng)
    if count <= 0:
        return []

    if processes is None or processes <= 1:
        return [random_state_scramble(rng) for _ in range(count)]

    # One seed per scramble so workers never share a stream
    seeds = rng.integers(0, 2**62, size=count).tolist()
    with mp.Pool(min(processes, count)) as pool:
        return pool.map(random_state_scramble, seeds)
