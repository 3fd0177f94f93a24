#!/usr/bin/env python3
"""
compare_scenarios.py
--------------------
Collect the per-scenario histogram JSON files written by run_scenarios.py
into one table and overlay their normalised distributions.

Outputs
-------
* scenario_comparison.csv - columns scenario, start, end, count, fraction
* scenario_comparison.png - fraction of trials vs bucket start, one line per scenario

Usage
-----
python compare_scenarios.py --results ./out --outdir ./out/diagnostics
"""

from __future__ import annotations
import argparse, json, sys
from pathlib import Path

import pandas as pd
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

COLUMNS = ["start", "end", "count"]


def load_histogram(path: Path) -> pd.DataFrame | None:
    """Return the bucket table of one JSON file, or None if it is not one."""
    try:
        data = json.loads(path.read_text())
    except (OSError, ValueError) as e:
        print(f"[warn] {path.name}: {e}", file=sys.stderr)
        return None
    if not isinstance(data, list) or not all(
            isinstance(r, dict) and set(COLUMNS) <= r.keys() for r in data):
        print(f"[warn] {path.name}: not a bucket list, skipped", file=sys.stderr)
        return None
    return pd.DataFrame(data, columns=COLUMNS)


def build_dataframe(results_dir: Path, pattern: str = "*.json") -> pd.DataFrame:
    frames = []
    files = sorted(results_dir.glob(pattern))
    print(f"[info] found {len(files)} file(s) in {results_dir}")
    for f in files:
        df = load_histogram(f)
        if df is None or df.empty:
            continue
        total = df["count"].sum()
        df.insert(0, "scenario", f.stem)
        df["fraction"] = df["count"] / total if total else 0.0
        frames.append(df)

    if not frames:
        raise RuntimeError(f"No valid histogram files in {results_dir}")
    return pd.concat(frames, ignore_index=True)


def plot_comparison(df: pd.DataFrame, png: Path) -> None:
    plt.figure(figsize=(6, 4))
    for name, sub in df.groupby("scenario", sort=True):
        sub = sub.sort_values("start")
        plt.step(sub["start"], sub["fraction"], where="post", label=name)
    plt.xlabel("peak concurrent ON gates")
    plt.ylabel("fraction of trials")
    plt.title("Peak-overlap distribution by scenario")
    plt.grid(True, alpha=0.3)
    plt.legend(fontsize=7)
    plt.tight_layout()
    plt.savefig(png, dpi=300)
    plt.close()


def main() -> None:
    ap = argparse.ArgumentParser(description="Compare scenario histograms")
    ap.add_argument("--results", default=".", help="directory with <scenario>.json files")
    ap.add_argument("--pattern", default="*.json", help="glob for result files (default %(default)s)")
    ap.add_argument("--outdir",  default="./diagnostics", help="where to save CSV + PNG")
    args = ap.parse_args()

    outdir = Path(args.outdir); outdir.mkdir(parents=True, exist_ok=True)

    df = build_dataframe(Path(args.results), args.pattern)

    csv = outdir / "scenario_comparison.csv"
    df.to_csv(csv, index=False); print("[saved]", csv)

    png = csv.with_suffix(".png")
    plot_comparison(df, png); print("[saved]", png)


if __name__ == "__main__":
    main()
