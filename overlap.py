"""
overlap.py
==========
Peak-overlap evaluation for a gate population.

    max_period(pop)                   largest period, 0.0 if empty
    sample_points(max_period, step)   instants in [max_period, 2*max_period)
    evaluate_max_on_range(pop, pts)   max over pts of the number of ON gates

The evaluation is a fork-join: the sample points are split into contiguous
chunks, each chunk is reduced to its own maximum (optionally on a thread
pool), and the chunk maxima are folded with :func:`keep_max`.  The
population is only read here.
"""

from __future__ import annotations
import os
from functools import reduce
from multiprocessing.pool import ThreadPool

import numpy as np
from numpy.typing import NDArray

from gates import GatePopulation

# --------------------------------------------------------------------------- #
DEFAULT_STEP   = 0.5        # seconds between sample points
MIN_CHUNK_SIZE = 16         # do not split the window finer than this
# --------------------------------------------------------------------------- #


def keep_max(best: float, cand: float) -> float:
    """Associative max; an indeterminate comparison (NaN) keeps *best*."""
    return cand if cand > best else best


def max_period(population: GatePopulation) -> float:
    if len(population) == 0:
        return 0.0
    return reduce(keep_max, population.period.tolist(), 0.0)


def sample_points(max_period: float, step: float = DEFAULT_STEP) -> NDArray[np.float64]:
    """[max_period, 2*max_period) in steps of *step*, lower bound included."""
    if step <= 0:
        raise ValueError(f"step must be > 0, got {step}")
    if max_period <= 0:
        return np.empty(0, dtype=np.float64)
    n = int(np.ceil(max_period / step))
    pts = max_period + step * np.arange(n, dtype=np.float64)
    return pts[pts < 2.0 * max_period]


def _chunk_max(args) -> float:
    population, pts = args
    if pts.size == 0 or len(population) == 0:
        return 0.0
    return float(population.values_at(pts).max())


def split_points(points: NDArray, jobs: int) -> list[NDArray]:
    """Contiguous chunks, sizes differing by at most one (as in divmod split)."""
    jobs = max(1, min(jobs, points.size // MIN_CHUNK_SIZE or 1))
    base, rem = divmod(points.size, jobs)
    bounds = np.cumsum([0] + [base + (i < rem) for i in range(jobs)])
    return [points[bounds[i]:bounds[i + 1]] for i in range(jobs)]


def evaluate_max_on_range(population: GatePopulation, points: NDArray,
                          pool: ThreadPool | None = None,
                          jobs: int | None = None) -> float:
    """
    Maximum, over *points*, of the instantaneous count of ON gates.

    Parameters
    ----------
    population : gates to evaluate (read-only during the call)
    points     : 1-D array of instants
    pool       : optional thread pool; chunks are mapped over it
    jobs       : number of chunks when a pool is given (default: CPU count)

    Returns 0.0 for an empty population or an empty point set.
    """
    points = np.asarray(points, dtype=np.float64)
    if len(population) == 0 or points.size == 0:
        return 0.0

    if pool is None:
        return keep_max(0.0, _chunk_max((population, points)))

    if jobs is None:
        jobs = os.cpu_count() or 1
    tasks = [(population, c) for c in split_points(points, jobs)]
    return reduce(keep_max, pool.map(_chunk_max, tasks), 0.0)
