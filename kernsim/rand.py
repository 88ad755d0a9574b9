"""MT19937 pseudorandom number generator with the original integer seeding."""

from __future__ import annotations

N = 624
M = 397
MATRIX_A = 0x9908B0DF  # constant vector a
UPPER_MASK = 0x80000000  # most significant w-r bits
LOWER_MASK = 0x7FFFFFFF  # least significant r bits

TEMPERING_MASK_B = 0x9D2C5680
TEMPERING_MASK_C = 0xEFC60000

RAND_MAX = 0x7FFFFFFF
DEFAULT_SEED = 4357

_WORD = 0xFFFFFFFF


class MersenneTwister:
    """A Mersenne Twister whose state is filled by the linear 69069 recurrence.

    Without an explicit seed the generator seeds itself with 4357 on the first
    draw.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._mt = [0] * N
        self._mti = N + 1  # N + 1 means the state was never seeded
        if seed is not None:
            self.seed(seed)

    def seed(self, seed: int) -> None:
        """Reset the state from a 32-bit seed (zero gives a degenerate stream)."""
        state = [seed & _WORD]
        for _ in range(1, N):
            state.append((69069 * state[-1]) & _WORD)
        self._mt = state
        self._mti = N

    def _twist(self) -> None:
        mt = self._mt
        for kk in range(N):
            y = (mt[kk] & UPPER_MASK) | (mt[(kk + 1) % N] & LOWER_MASK)
            mt[kk] = mt[(kk + M) % N] ^ (y >> 1) ^ (MATRIX_A if y & 1 else 0)
        self._mti = 0

    def genrand(self) -> int:
        """Return the next value in [0, RAND_MAX]."""
        if self._mti >= N:
            if self._mti == N + 1:
                self.seed(DEFAULT_SEED)
            self._twist()
        y = self._mt[self._mti]
        self._mti += 1
        y ^= y >> 11
        y ^= (y << 7) & TEMPERING_MASK_B
        y ^= (y << 15) & TEMPERING_MASK_C
        y ^= y >> 18
        return y & RAND_MAX

    def random_at_most(self, maximum: int) -> int:
        """Return a uniformly distributed value in the closed range [0, maximum]."""
        if not 0 <= maximum <= RAND_MAX:
            raise ValueError(f"maximum must lie in [0, {RAND_MAX}], got {maximum}")
        num_bins = maximum + 1
        num_rand = RAND_MAX + 1
        bin_size, defect = divmod(num_rand, num_bins)
        while True:
            x = self.genrand()
            if x < num_rand - defect:
                return x // bin_size