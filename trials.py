"""
trials.py
=========
Monte-Carlo trial loop.

One trial = re-randomize every gate's start time in place, then evaluate
the peak overlap over the (fixed) sample window and add it to the
histogram.  Trials run one after another because each one rewrites the
population; only the evaluation inside a trial is spread over threads.
"""

from __future__ import annotations
import os
from multiprocessing.pool import ThreadPool

import numpy as np
from numpy.typing import NDArray
from tqdm import tqdm

from gates import GatePopulation, randomize_start_time
from overlap import evaluate_max_on_range
from peak_hist import PeakHistogram


def resolve_workers(threads: int | None) -> int:
    """How many evaluation threads will actually be used."""
    if threads is not None and threads < 1:
        raise ValueError(f"threads must be >= 1, got {threads}")
    cpu = os.cpu_count() or 1
    return max(1, min(threads or cpu, cpu))


def run_trials(population: GatePopulation, trial_count: int,
               points: NDArray, histogram: PeakHistogram,
               rng: np.random.Generator,
               threads: int | None = None,
               progress: bool = True,
               desc: str = "trials") -> NDArray[np.int64]:
    """
    Run *trial_count* trials and feed each peak into *histogram*.

    Returns the per-trial peaks (int64, trial order).  *population* is
    left with the start times of the last trial.
    """
    if trial_count < 0:
        raise ValueError(f"trial_count must be >= 0, got {trial_count}")

    jobs  = resolve_workers(threads)
    peaks = np.zeros(trial_count, dtype=np.int64)

    pool = ThreadPool(jobs) if jobs > 1 else None
    try:
        with tqdm(total=trial_count, desc=desc, disable=not progress) as bar:
            for i in range(trial_count):
                randomize_start_time(population, rng)
                peak = evaluate_max_on_range(population, points, pool=pool, jobs=jobs)
                peaks[i] = int(peak)
                histogram.add(peaks[i])
                bar.update(1)
    finally:
        if pool is not None:
            pool.close()
            pool.join()
    return peaks
