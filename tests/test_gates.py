import numpy as np
import pytest

from gates import (Gate, GatePopulation, generate_n_periodic,
                   randomize_start_time, with_coherent_groups)


def test_single_gate_example():
    g = Gate(high_duration=1, low_duration=9, start_time=0)
    assert g.calculate_value(0.5) == 1
    assert g.calculate_value(5.0) == 0
    assert g.calculate_value(10.5) == 1


def test_calculate_value_is_periodic():
    g = Gate(high_duration=3, low_duration=4, start_time=2)
    for t in np.arange(-30, 30, 0.25):
        assert g.calculate_value(t) == g.calculate_value(t + g.period())


def test_on_exactly_in_high_part_of_phase():
    g = Gate(high_duration=2, low_duration=6, start_time=5)
    for phase in np.arange(0, 8, 0.5):
        expected = 1 if phase < 2 else 0
        assert g.calculate_value(5 + phase) == expected
        # instants before start_time wrap into [0, period)
        assert g.calculate_value(5 + phase - 3 * g.period()) == expected


def test_period_is_sum_of_durations():
    g = Gate(high_duration=2.5, low_duration=7.5)
    assert g.period() == 10.0


def test_random_gate_parameters(rng):
    for _ in range(200):
        g = Gate.new_random_periodic(20.0, 0.5, rng)
        assert g.period() > 0
        assert 10 <= g.period() <= 20
        assert g.high_duration == int(g.high_duration)
        assert g.low_duration == int(g.low_duration)
        assert 0 <= g.start_time <= g.period()


@pytest.mark.parametrize("max_period,ratio", [(10.0, 0.5), (5.0, 0.5), (20.0, 0.0), (20.0, 1.0)])
def test_random_gate_rejects_bad_params(rng, max_period, ratio):
    with pytest.raises(ValueError):
        Gate.new_random_periodic(max_period, ratio, rng)


def test_generate_n_periodic(rng):
    pop = generate_n_periodic(50, 20.0, 0.3, rng)
    assert len(pop) == 50
    assert np.all(pop.period > 0)
    assert all(isinstance(g, Gate) for g in pop)
    assert len(generate_n_periodic(0, 20.0, 0.3, rng)) == 0


def test_randomize_start_time_in_place(rng):
    pop = generate_n_periodic(100, 20.0, 0.5, rng)
    high, low = pop.high.copy(), pop.low.copy()
    start_buf = pop.start
    randomize_start_time(pop, rng)
    assert pop.start is start_buf
    assert np.all(pop.start >= 0)
    assert np.all(pop.start < pop.period)
    np.testing.assert_array_equal(pop.high, high)
    np.testing.assert_array_equal(pop.low, low)


def test_values_at_matches_scalar_model(rng):
    pop = generate_n_periodic(30, 20.0, 0.4, rng)
    randomize_start_time(pop, rng)
    pts = np.arange(-5, 45, 0.5)
    counts = pop.values_at(pts)
    for t, c in zip(pts, counts):
        assert c == sum(g.calculate_value(t) for g in pop)


@pytest.mark.parametrize("P,d,g", [(1000, 0.1, 1), (1000, 1.0, 1), (100, 0.5, 3),
                                   (10, 0.05, 1), (10, 0.0, 2), (7, 0.3, 4)])
def test_coherent_group_population_size(rng, P, d, g):
    base = generate_n_periodic(P, 20.0, 0.5, rng)
    out = with_coherent_groups(base, d, g, 20.0, 0.5, rng)
    dropped = int(P * d)
    assert len(out) == P - dropped + g * max(1, dropped // g)
    assert len(base) == P


def test_coherent_groups_share_parameters(rng):
    base = generate_n_periodic(100, 20.0, 0.5, rng)
    out = with_coherent_groups(base, 0.5, 2, 20.0, 0.5, rng)
    # kept prefix is unchanged
    np.testing.assert_array_equal(out.high[:50], base.high[:50])
    np.testing.assert_array_equal(out.start[:50], base.start[:50])
    for grp in (slice(50, 75), slice(75, 100)):
        assert len(set(out.high[grp])) == 1
        assert len(set(out.low[grp])) == 1
        assert len(set(out.start[grp])) == 1


def test_coherent_groups_reject_bad_params(rng):
    base = generate_n_periodic(10, 20.0, 0.5, rng)
    with pytest.raises(ValueError):
        with_coherent_groups(base, 0.5, 0, 20.0, 0.5, rng)
    with pytest.raises(ValueError):
        with_coherent_groups(base, 1.5, 1, 20.0, 0.5, rng)


def test_population_requires_matching_arrays():
    with pytest.raises(ValueError):
        GatePopulation([1, 2], [1], [0, 0])


@pytest.mark.parametrize("max_period", [10.5, 10.01, 11.0])
def test_non_integer_period_bound_just_above_minimum(rng, max_period):
    for _ in range(50):
        g = Gate.new_random_periodic(max_period, 0.5, rng)
        assert g.period() >= 10
        assert 10 <= g.high_duration + g.low_duration <= 11
    pop = generate_n_periodic(5, max_period, 0.5, rng)
    assert len(pop) == 5


def test_coherent_duplicates_are_rephased_independently(rng):
    base = generate_n_periodic(10, 20.0, 0.5, rng)
    out = with_coherent_groups(base, 0.5, 1, 20.0, 0.5, rng)
    group = slice(5, 10)
    assert len(set(out.start[group])) == 1

    randomize_start_time(out, rng)
    # shared durations survive, the common phase does not
    assert len(set(out.start[group])) > 1
    assert len(set(out.high[group])) == 1
    assert len(set(out.low[group])) == 1


def test_values_at_blocked_evaluation_matches_single_block(rng):
    pop = generate_n_periodic(25, 20.0, 0.5, rng)
    randomize_start_time(pop, rng)
    pts = np.arange(0, 60, 0.25)
    whole = pop.values_at(pts, max_cells=len(pop) * pts.size)
    np.testing.assert_array_equal(pop.values_at(pts, max_cells=1), whole)
    np.testing.assert_array_equal(pop.values_at(pts, max_cells=len(pop) * 7), whole)
