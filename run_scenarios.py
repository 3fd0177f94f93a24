#!/usr/bin/env python3
"""
run_scenarios.py
================
Monte-Carlo distribution of the peak number of simultaneously ON gates
for a population of independent periodic ON/OFF sources, with and without
coherent sub-groups.

Scenarios
---------
1. *random*  - JOB_COUNT independent random gates.
2. *pct_<p>_groups_<g>* - for every (p, g) in PERCENTAGES x GROUPS the
   random population with int(p * JOB_COUNT) gates replaced by g groups of
   identical gates (see gates.with_coherent_groups).

For every scenario:

    build population -> sample window [T, 2T) step STEP (T = max period)
    -> CONFIG_COUNT trials (re-randomize phases, evaluate peak)
    -> histogram with NUM_BUCKETS buckets -> <outdir>/<scenario>.json

Outputs
-------
* <scenario>.json            - [{"start", "end", "count"}, ...]
* <scenario>.csv             - same table            (--csv)
* <scenario>.png             - bar plot              (--plot)
* <scenario>_peaks.parquet   - per-trial peaks       (--save-peaks)
* scenarios_report.txt       - full console log of the run

Example
-------
python run_scenarios.py --jobs 1000 --trials 50000 --pct 0.1,0.2,0.5,1.0 \
                        --groups 1,2 --outdir ./out --plot
"""

from __future__ import annotations
import argparse, itertools, sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

import numpy as np

from gates import GatePopulation, generate_n_periodic, with_coherent_groups
from overlap import DEFAULT_STEP, max_period, sample_points
from peak_hist import PeakHistogram
from trials import run_trials
import report

# --------------------------------------------------------------------------- #
JOB_COUNT    = 1000                  # gates per population
CONFIG_COUNT = 50_000                # trials per scenario
MAX_PERIOD   = 20.0                  # periods drawn from [10, MAX_PERIOD)
HIGH_RATIO   = 0.5                   # target ON fraction of each period
NUM_BUCKETS  = 20
PERCENTAGES  = [0.1, 0.2, 0.5, 1.0]  # fraction of gates replaced by groups
GROUPS       = [1]                   # number of coherent groups
STEP         = DEFAULT_STEP          # seconds between sample points
REPORT_NAME  = "scenarios_report.txt"
# --------------------------------------------------------------------------- #

Emit = Callable[[str], None]


@dataclass(frozen=True)
class Scenario:
    percentage: float | None = None
    groups:     int | None   = None

    @property
    def stem(self) -> str:
        if self.percentage is None:
            return "random"
        return f"pct_{self.percentage:g}_groups_{self.groups}"


@dataclass
class SimConfig:
    job_count:   int   = JOB_COUNT
    trials:      int   = CONFIG_COUNT
    max_period:  float = MAX_PERIOD
    high_ratio:  float = HIGH_RATIO
    num_buckets: int   = NUM_BUCKETS
    percentages: list[float] = field(default_factory=lambda: list(PERCENTAGES))
    groups:      list[int]   = field(default_factory=lambda: list(GROUPS))
    step:        float = STEP
    outdir:      Path  = Path(".")
    threads:     int | None = None
    progress:    bool  = True
    csv:         bool  = False
    plot:        bool  = False
    save_peaks:  bool  = False

    def validate(self) -> None:
        if self.job_count < 0:
            raise ValueError("job count must be >= 0")
        if self.trials < 0:
            raise ValueError("trial count must be >= 0")
        if not self.max_period > 10:
            raise ValueError("max period must be > 10")
        if not 0.0 < self.high_ratio < 1.0:
            raise ValueError("high ratio must be in (0, 1)")
        if self.num_buckets < 1:
            raise ValueError("bucket count must be >= 1")
        if any(not 0.0 <= p <= 1.0 for p in self.percentages):
            raise ValueError("percentages must be in [0, 1]")
        if any(g < 1 for g in self.groups):
            raise ValueError("group counts must be >= 1")
        if self.step <= 0:
            raise ValueError("step must be > 0")
        if self.threads is not None and self.threads < 1:
            raise ValueError("threads must be >= 1")


def coherent_scenarios(percentages: list[float], groups: list[int]) -> list[Scenario]:
    return [Scenario(p, g) for p, g in itertools.product(percentages, groups)]


# --------------------------------------------------------------------------- #
def run_gates(population: GatePopulation, scenario: Scenario, cfg: SimConfig,
              rng: np.random.Generator, emit: Emit = print) -> PeakHistogram:
    """One scenario: sample window -> trials -> histogram -> files."""
    emit(f"[info] job count      = {len(population)}")
    emit(f"[info] number of runs = {cfg.trials}")
    emit(f"[info] duty ratio     = {cfg.high_ratio}")

    t_max  = max_period(population)
    points = sample_points(t_max, cfg.step)
    emit(f"[info] window         = [{t_max:g}, {2 * t_max:g})  "
         f"({points.size} points, step {cfg.step:g})")
    if points.size < 2:
        emit(f"[warn] {scenario.stem}: sample window has {points.size} point(s)")

    hist  = PeakHistogram(cfg.num_buckets)
    peaks = run_trials(population, cfg.trials, points, hist, rng,
                       threads=cfg.threads, progress=cfg.progress,
                       desc=scenario.stem)
    hist.freeze()

    emit(report.render_text(hist))

    out = cfg.outdir / f"{scenario.stem}.json"
    report.histogram_to_json(hist, out); emit(f"[saved] {out}")
    if cfg.csv:
        out = report.histogram_to_csv(hist, cfg.outdir / f"{scenario.stem}.csv")
        emit(f"[saved] {out}")
    if cfg.plot:
        out = report.plot_histogram(hist, cfg.outdir / f"{scenario.stem}.png",
                                    title=scenario.stem)
        emit(f"[saved] {out}")
    if cfg.save_peaks:
        out = report.save_peaks(peaks, cfg.outdir / f"{scenario.stem}_peaks.parquet")
        emit(f"[saved] {out}")
    return hist


def run_random(cfg: SimConfig, rng: np.random.Generator,
               emit: Emit = print) -> tuple[GatePopulation, PeakHistogram]:
    """Pure random scenario; returns the base population for the coherent ones."""
    population = generate_n_periodic(cfg.job_count, cfg.max_period,
                                     cfg.high_ratio, rng)
    # trials rewrite start times, keep the base population as generated
    hist = run_gates(population.copy(), Scenario(), cfg, rng, emit)
    return population, hist


def run_with_coherency(base: GatePopulation, scenario: Scenario, cfg: SimConfig,
                       rng: np.random.Generator, emit: Emit = print) -> PeakHistogram:
    emit("#######################################")
    emit(f"PCT {scenario.percentage:g} GROUPS {scenario.groups}")
    emit("#######################################")
    population = with_coherent_groups(base, scenario.percentage, scenario.groups,
                                      cfg.max_period, cfg.high_ratio, rng)
    return run_gates(population, scenario, cfg, rng, emit)


def run_all(cfg: SimConfig, rng: np.random.Generator,
            emit: Emit = print) -> dict[str, PeakHistogram]:
    """Random scenario, then every coherent scenario, in order."""
    cfg.validate()
    cfg.outdir.mkdir(parents=True, exist_ok=True)

    base, hist = run_random(cfg, rng, emit)
    results = {Scenario().stem: hist}
    for sc in coherent_scenarios(cfg.percentages, cfg.groups):
        results[sc.stem] = run_with_coherency(base, sc, cfg, rng, emit)
    return results


# --------------------------------------------------------------------------- #
def _float_list(s: str) -> list[float]:
    return [float(v) for v in s.split(",") if v.strip()]

def _int_list(s: str) -> list[int]:
    return [int(v) for v in s.split(",") if v.strip()]


def main() -> None:
    ap = argparse.ArgumentParser(description="Peak-overlap Monte-Carlo for periodic gates")
    ap.add_argument("--jobs",       type=int,   default=JOB_COUNT,    help="gates per population (default %(default)s)")
    ap.add_argument("--trials",     type=int,   default=CONFIG_COUNT, help="trials per scenario (default %(default)s)")
    ap.add_argument("--max-period", type=float, default=MAX_PERIOD,   help="upper bound (exclusive) of random periods")
    ap.add_argument("--ratio",      type=float, default=HIGH_RATIO,   help="target ON fraction (default %(default)s)")
    ap.add_argument("--buckets",    type=int,   default=NUM_BUCKETS,  help="histogram buckets (default %(default)s)")
    ap.add_argument("--pct",        type=_float_list, default=PERCENTAGES,
                    help="comma-separated fractions replaced by coherent groups")
    ap.add_argument("--groups",     type=_int_list,   default=GROUPS,
                    help="comma-separated coherent group counts")
    ap.add_argument("--step",       type=float, default=STEP,         help="sample spacing in seconds")
    ap.add_argument("--outdir",     default=".",                      help="where to write results")
    ap.add_argument("--threads",    type=int,   default=None,         help="evaluation threads (default: CPU count)")
    ap.add_argument("--seed",       type=int,   default=None,         help="RNG seed (default: None)")
    ap.add_argument("--csv",        action="store_true", help="also write <scenario>.csv")
    ap.add_argument("--plot",       action="store_true", help="also write <scenario>.png")
    ap.add_argument("--save-peaks", action="store_true", help="also write per-trial peaks as Parquet")
    ap.add_argument("--no-progress", action="store_true", help="disable the progress bar")
    args = ap.parse_args()

    cfg = SimConfig(
        job_count=args.jobs, trials=args.trials, max_period=args.max_period,
        high_ratio=args.ratio, num_buckets=args.buckets,
        percentages=args.pct, groups=args.groups, step=args.step,
        outdir=Path(args.outdir), threads=args.threads,
        progress=not args.no_progress, csv=args.csv, plot=args.plot,
        save_peaks=args.save_peaks,
    )
    try:
        cfg.validate()
    except ValueError as e:
        sys.exit(f"Error: {e}")

    # collect all console lines so we can also write them to disk
    log_lines: list[str] = []
    def emit(line: str = "") -> None:
        print(line)
        log_lines.append(line)

    if args.seed is not None:
        emit(f"[info] using seed {args.seed}")
    rng = np.random.default_rng(args.seed)

    try:
        run_all(cfg, rng, emit)
    except OSError as e:
        print(f"[error] {e}", file=sys.stderr)
        sys.exit(1)
    except ValueError as e:
        sys.exit(f"Error: {e}")

    report_txt = cfg.outdir / REPORT_NAME
    try:
        report_txt.write_text("\n".join(log_lines) + "\n")
        print(f"\nReport saved to: {report_txt}")
    except OSError as e:
        print(f"\n[warn] could not write report file: {e}")


if __name__ == "__main__":
    main()
