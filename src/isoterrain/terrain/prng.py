"""String-seeded PRNG for noise permutation tables.

The cyrb128 string hash seeds an sfc32 generator. The first outputs of
sfc32 are poorly mixed for closely related seeds, so the generator
discards a fixed number of values before handing any out.
"""

_MASK32 = 0xFFFFFFFF

# Outputs discarded at construction
_WARMUP = 32


def _uint32(n: int) -> int:
    """Convert to unsigned 32-bit integer."""
    return n & _MASK32


def _imul(a: int, b: int) -> int:
    """32-bit multiply keeping the low word."""
    return (a * b) & _MASK32


def _code_units(text: str) -> list[int]:
    """UTF-16 code units of a string; astral characters become surrogate pairs."""
    encoded = text.encode("utf-16-le")
    return [
        encoded[i] | (encoded[i + 1] << 8) for i in range(0, len(encoded), 2)
    ]


def cyrb128(text: str) -> tuple[int, int, int, int]:
    """Hash a string into four 32-bit seed words."""
    h1, h2, h3, h4 = 1779033703, 3144134277, 1013904242, 2773480762
    for k in _code_units(text):
        h1 = h2 ^ _imul(h1 ^ k, 597399067)
        h2 = h3 ^ _imul(h2 ^ k, 2869860233)
        h3 = h4 ^ _imul(h3 ^ k, 951274213)
        h4 = h1 ^ _imul(h4 ^ k, 2716044179)

    h1 = _imul(h3 ^ (h1 >> 18), 597399067)
    h2 = _imul(h4 ^ (h2 >> 22), 2869860233)
    h3 = _imul(h1 ^ (h3 >> 17), 951274213)
    h4 = _imul(h2 ^ (h4 >> 19), 2716044179)

    return (
        _uint32(h1 ^ h2 ^ h3 ^ h4),
        _uint32(h2 ^ h1),
        _uint32(h3 ^ h1),
        _uint32(h4 ^ h1),
    )


class SeededRandom:
    """sfc32 generator seeded from a string via cyrb128."""

    def __init__(self, seed: str):
        self.seed = seed
        self.call_count = 0
        self._a, self._b, self._c, self._d = cyrb128(seed)
        for _ in range(_WARMUP):
            self.next()
        self.call_count = 0

    def next(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        a, b, c, d = self._a, self._b, self._c, self._d

        t = _uint32(a + b)
        a = b ^ (b >> 9)
        b = _uint32(c + (c << 3))
        c = _uint32((c << 21) | (c >> 11))
        d = _uint32(d + 1)
        t = _uint32(t + d)
        c = _uint32(c + t)

        self._a, self._b, self._c, self._d = a, b, c, d
        return t / 4294967296

    def randint(self, low: int, high: int) -> int:
        """Random integer in [low, high)."""
        return low + int(self.next() * (high - low))
