import pytest

from kernsim.rand import DEFAULT_SEED, N, RAND_MAX, MersenneTwister


def test_same_seed_gives_same_sequence():
    a = MersenneTwister(12345)
    b = MersenneTwister(12345)
    assert [a.genrand() for _ in range(50)] == [b.genrand() for _ in range(50)]


def test_different_seeds_differ():
    a = MersenneTwister(1)
    b = MersenneTwister(2)
    assert [a.genrand() for _ in range(20)] != [b.genrand() for _ in range(20)]


def test_unseeded_uses_default_seed():
    implicit = MersenneTwister()
    explicit = MersenneTwister(DEFAULT_SEED)
    assert [implicit.genrand() for _ in range(10)] == [
        explicit.genrand() for _ in range(10)
    ]


def test_default_seed_value():
    implicit = MersenneTwister()
    literal = MersenneTwister(4357)
    assert [implicit.genrand() for _ in range(10)] == [
        literal.genrand() for _ in range(10)
    ]


def test_values_within_range_across_regenerations():
    gen = MersenneTwister(99)
    values = [gen.genrand() for _ in range(3 * N)]
    assert all(0 <= v <= RAND_MAX for v in values)
    assert len(set(values)) > 3 * N - 5


def test_reseed_restarts_sequence():
    gen = MersenneTwister(7)
    first = [gen.genrand() for _ in range(2 * N + 3)]
    gen.seed(7)
    again = [gen.genrand() for _ in range(2 * N + 3)]
    assert first == again


def test_zero_seed_is_degenerate():
    gen = MersenneTwister(0)
    assert [gen.genrand() for _ in range(5)] == [0, 0, 0, 0, 0]


def test_seed_is_truncated_to_32_bits():
    a = MersenneTwister(5)
    b = MersenneTwister(5 + (1 << 32))
    assert [a.genrand() for _ in range(10)] == [b.genrand() for _ in range(10)]


def test_random_at_most_zero():
    gen = MersenneTwister(3)
    assert {gen.random_at_most(0) for _ in range(100)} == {0}


@pytest.mark.parametrize("maximum", [1, 6, 100, 1000003])
def test_random_at_most_in_range(maximum):
    gen = MersenneTwister(11)
    values = [gen.random_at_most(maximum) for _ in range(500)]
    assert all(0 <= v <= maximum for v in values)


def test_random_at_most_covers_small_range():
    gen = MersenneTwister(21)
    values = {gen.random_at_most(3) for _ in range(500)}
    assert values == {0, 1, 2, 3}


def test_random_at_most_full_range_matches_genrand():
    a = MersenneTwister(8)
    b = MersenneTwister(8)
    assert [a.random_at_most(RAND_MAX) for _ in range(20)] == [
        b.genrand() for _ in range(20)
    ]


@pytest.mark.parametrize("maximum", [-1, RAND_MAX + 1])
def test_random_at_most_rejects_out_of_range(maximum):
    gen = MersenneTwister(1)
    with pytest.raises(ValueError):
        gen.random_at_most(maximum)