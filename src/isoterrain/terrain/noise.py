"""Seeded 2D gradient noise.

Provides a coherent noise field that is a pure function of a seed string and
real coordinates, with both scalar and vectorized sampling. The vectorized
path performs the same floating point operations in the same order, so both
return bit-identical values.
"""

import math

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .prng import SeededRandom

# Eight lattice gradients: four diagonals, then four axis directions
_GRADIENTS = ((1, 1), (-1, 1), (1, -1), (-1, -1), (1, 0), (-1, 0), (0, 1), (0, -1))
_GRAD_X = np.array([g[0] for g in _GRADIENTS], dtype=np.float64)
_GRAD_Y = np.array([g[1] for g in _GRADIENTS], dtype=np.float64)

# Raw interpolated values lie within +-1/sqrt(2)
_SCALE = math.sqrt(2.0)

DEFAULT_SEED = "procgentown"


def build_permutation_table(random: SeededRandom) -> NDArray[np.uint8]:
    """Shuffle 0..255 with the given generator and double it to 512 entries.

    Args:
        random: Seeded generator; consumes 255 values.

    Returns:
        Permutation table of shape (512,).
    """
    table = list(range(256))
    for i in range(255):
        r = random.randint(i, 256)
        table[i], table[r] = table[r], table[i]
    return np.array(table + table, dtype=np.uint8)


def _fade(t):
    """Quintic ease curve 6t^5 - 15t^4 + 10t^3."""
    return t * t * t * (t * (t * 6 - 15) + 10)


class PerlinNoise2D:
    """Coherent 2D gradient (improved Perlin) noise with output in [-1, 1].

    Immutable after construction; samples depend only on the seed and
    the coordinates. Integer lattice points always sample to zero.
    """

    def __init__(self, seed: str = DEFAULT_SEED):
        self._seed = seed
        self._perm = build_permutation_table(SeededRandom(seed))
        self._perm.setflags(write=False)

    @property
    def seed(self) -> str:
        """Seed string the permutation table was built from."""
        return self._seed

    def _hash(self, i: int, j: int) -> int:
        perm = self._perm
        return int(perm[int(perm[i & 255]) + (j & 255)]) & 7

    def _dot(self, i: int, j: int, dx: float, dy: float) -> float:
        gx, gy = _GRADIENTS[self._hash(i, j)]
        return gx * dx + gy * dy

    def sample(self, x: float, y: float) -> float:
        """Sample noise at a single point."""
        i = math.floor(x)
        j = math.floor(y)
        xf = x - i
        yf = y - j
        u = _fade(xf)
        v = _fade(yf)

        n00 = self._dot(i, j, xf, yf)
        n10 = self._dot(i + 1, j, xf - 1, yf)
        n01 = self._dot(i, j + 1, xf, yf - 1)
        n11 = self._dot(i + 1, j + 1, xf - 1, yf - 1)

        nx0 = n00 + u * (n10 - n00)
        nx1 = n01 + u * (n11 - n01)
        return max(-1.0, min(1.0, (nx0 + v * (nx1 - nx0)) * _SCALE))

    def sample_grid(self, xs: ArrayLike, ys: ArrayLike) -> NDArray[np.float64]:
        """Sample noise element-wise over broadcastable coordinate arrays.

        Args:
            xs: X coordinates.
            ys: Y coordinates, broadcastable against xs.

        Returns:
            Array of noise values with the broadcast shape of the inputs.
        """
        x, y = np.broadcast_arrays(
            np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64)
        )
        perm = self._perm.astype(np.int64)

        i = np.floor(x).astype(np.int64)
        j = np.floor(y).astype(np.int64)
        xf = x - i
        yf = y - j
        u = _fade(xf)
        v = _fade(yf)

        def dot(ci, cj, dx, dy):
            h = perm[perm[ci & 255] + (cj & 255)] & 7
            return _GRAD_X[h] * dx + _GRAD_Y[h] * dy

        n00 = dot(i, j, xf, yf)
        n10 = dot(i + 1, j, xf - 1, yf)
        n01 = dot(i, j + 1, xf, yf - 1)
        n11 = dot(i + 1, j + 1, xf - 1, yf - 1)

        nx0 = n00 + u * (n10 - n00)
        nx1 = n01 + u * (n11 - n01)
        return np.clip((nx0 + v * (nx1 - nx0)) * _SCALE, -1.0, 1.0)
