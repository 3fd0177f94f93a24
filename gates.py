"""
gates.py
========
Periodic ON/OFF sources ("gates") and populations of them.

A gate is ON for ``high_duration`` seconds and OFF for ``low_duration``
seconds out of every period; ``start_time`` is the phase offset (time of
the first OFF-period boundary).  The value at time t is

    phase = (t - start_time) mod period        (floored, in [0, period))
    value = 1  if phase < high_duration  else 0

A population keeps the three parameters as parallel numpy arrays so that
the overlap evaluation in *overlap.py* can be vectorised over gates.
``start_time`` is the only field rewritten between trials.
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np
from numpy.typing import NDArray

# --------------------------------------------------------------------------- #
MIN_PERIOD   = 10          # lower bound (inclusive) of a random period
PHASE_STEPS  = 100_000     # resolution of the start-time re-draw
MAX_CELLS    = 1 << 22     # gates x points evaluated per block in values_at
# --------------------------------------------------------------------------- #


def _check_params(max_period: float, high_ratio: float) -> None:
    if not max_period > MIN_PERIOD:
        raise ValueError(f"max_period must be > {MIN_PERIOD}, got {max_period}")
    if not 0.0 < high_ratio < 1.0:
        raise ValueError(f"high_ratio must be in (0, 1), got {high_ratio}")


@dataclass(frozen=True)
class Gate:
    """One periodic pulse source."""
    high_duration: float
    low_duration:  float
    start_time:    float = 0.0

    def period(self) -> float:
        return self.high_duration + self.low_duration

    def calculate_value(self, t: float) -> int:
        """Return 1 if the gate is ON at time *t*, else 0."""
        phase = (t - self.start_time) % self.period()
        return 1 if phase < self.high_duration else 0

    @classmethod
    def new_random_periodic(cls, max_period: float, high_ratio: float,
                            rng: np.random.Generator) -> "Gate":
        """
        Integer period uniform in [MIN_PERIOD, ceil(max_period)), i.e. every
        integer in [MIN_PERIOD, max_period), durations split
        by *high_ratio* and rounded up, start time uniform in [0, period)
        rounded up.  Rounding means the realised duty ratio can differ
        slightly from *high_ratio*.
        """
        _check_params(max_period, high_ratio)
        period = float(rng.integers(MIN_PERIOD, math.ceil(max_period)))
        low    = (1.0 - high_ratio) * period
        high   = period - low
        start  = rng.random() * period
        return cls(high_duration=float(math.ceil(high)),
                   low_duration=float(math.ceil(low)),
                   start_time=float(math.ceil(start)))


# --------------------------------------------------------------------------- #
class GatePopulation:
    """
    Ordered, mutable collection of gates stored column-wise.

    Order is fixed at construction.  Only ``start`` is ever written after
    that, by :func:`randomize_start_time`.
    """

    def __init__(self, high: NDArray, low: NDArray, start: NDArray):
        self.high  = np.asarray(high,  dtype=np.float64).copy()
        self.low   = np.asarray(low,   dtype=np.float64).copy()
        self.start = np.asarray(start, dtype=np.float64).copy()
        if not (self.high.shape == self.low.shape == self.start.shape) \
                or self.high.ndim != 1:
            raise ValueError("high/low/start must be 1-D arrays of equal length")

    @classmethod
    def from_gates(cls, gates: list[Gate]) -> "GatePopulation":
        return cls([g.high_duration for g in gates],
                   [g.low_duration  for g in gates],
                   [g.start_time    for g in gates])

    @property
    def period(self) -> NDArray[np.float64]:
        return self.high + self.low

    def __len__(self) -> int:
        return self.high.size

    def __getitem__(self, i: int) -> Gate:
        return Gate(float(self.high[i]), float(self.low[i]), float(self.start[i]))

    def __iter__(self) -> Iterator[Gate]:
        for i in range(len(self)):
            yield self[i]

    def copy(self) -> "GatePopulation":
        return GatePopulation(self.high, self.low, self.start)

    def extend(self, gates: list[Gate]) -> None:
        if not gates:
            return
        extra = GatePopulation.from_gates(gates)
        self.high  = np.concatenate([self.high,  extra.high])
        self.low   = np.concatenate([self.low,   extra.low])
        self.start = np.concatenate([self.start, extra.start])

    def truncate(self, n: int) -> None:
        """Keep only the first *n* gates."""
        self.high, self.low, self.start = self.high[:n], self.low[:n], self.start[:n]

    def values_at(self, points: NDArray, max_cells: int = MAX_CELLS) -> NDArray[np.int64]:
        """
        Number of ON gates at each instant in *points* (shape (len(points),)).
        np.mod is floored, so instants before ``start`` wrap into [0, period).

        Points are processed in blocks so that the gates x points phase
        matrix never exceeds *max_cells* entries.
        """
        t      = np.asarray(points, dtype=np.float64)
        out    = np.zeros(t.size, dtype=np.int64)
        period = self.period[:, None]
        block  = max(1, max_cells // max(1, len(self)))
        for lo in range(0, t.size, block):
            tb    = t[lo:lo + block]
            phase = np.mod(tb[None, :] - self.start[:, None], period)
            out[lo:lo + block] = (phase < self.high[:, None]).sum(axis=0, dtype=np.int64)
        return out


# --------------------------------------------------------------------------- #
def randomize_start_time(population: GatePopulation,
                         rng: np.random.Generator) -> None:
    """Redraw every start time in place, uniform in [0, period) on a fine grid."""
    steps = rng.integers(0, PHASE_STEPS, size=len(population))
    population.start[:] = steps * population.period / PHASE_STEPS


def generate_n_periodic(n: int, max_period: float, high_ratio: float,
                        rng: np.random.Generator) -> GatePopulation:
    """*n* independently drawn gates, no coherence between them."""
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    _check_params(max_period, high_ratio)
    gates = [Gate.new_random_periodic(max_period, high_ratio, rng) for _ in range(n)]
    return GatePopulation.from_gates(gates)


def with_coherent_groups(population: GatePopulation, fraction: float,
                         groups: int, max_period: float, high_ratio: float,
                         rng: np.random.Generator) -> GatePopulation:
    """
    Replace ``int(fraction * len(population))`` gates (taken from the end)
    with *groups* coherent groups.  Each group is one random gate copied
    ``max(1, dropped // groups)`` times.

    The copies share period, durations and initial start time.  Trials
    re-randomize each copy's start time independently, so after the first
    trial only the shared period/durations remain.

    The input population is left untouched.
    """
    if groups < 1:
        raise ValueError(f"groups must be >= 1, got {groups}")
    if not 0.0 <= fraction <= 1.0:
        raise ValueError(f"fraction must be in [0, 1], got {fraction}")

    out      = population.copy()
    to_drop  = int(len(out) * fraction)
    out.truncate(len(out) - to_drop)

    per_group = max(1, to_drop // groups)
    for _ in range(groups):
        wave = Gate.new_random_periodic(max_period, high_ratio, rng)
        out.extend([wave] * per_group)
    return out
