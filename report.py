"""
report.py
=========
Output side of a scenario run.

* histogram_to_json   - list of {start, end, count} records (one file per scenario)
* histogram_to_csv    - same table as CSV
* plot_histogram      - bar plot PNG
* save_peaks          - per-trial peaks as ZSTD-compressed Parquet
* render_text         - console summary of a histogram

Every writer raises OSError on failure; the caller decides whether the
run goes on.
"""

from __future__ import annotations
import json
from pathlib import Path

import numpy as np
import pandas as pd
import pyarrow as pa
import pyarrow.parquet as pq
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from peak_hist import PeakHistogram

BAR_WIDTH = 60      # max number of marks in render_text


# ------------------------------------------------------------------------- #
def bucket_records(hist: PeakHistogram) -> list[dict]:
    return [b._asdict() for b in hist.buckets()]


def histogram_to_frame(hist: PeakHistogram) -> pd.DataFrame:
    return pd.DataFrame(bucket_records(hist), columns=["start", "end", "count"])


def histogram_to_json(hist: PeakHistogram, path: Path) -> Path:
    path = Path(path)
    path.write_text(json.dumps(bucket_records(hist), indent=2))
    return path


def histogram_to_csv(hist: PeakHistogram, path: Path) -> Path:
    path = Path(path)
    histogram_to_frame(hist).to_csv(path, index=False)
    return path


def save_peaks(peaks: np.ndarray, path: Path) -> Path:
    path = Path(path)
    df = pd.DataFrame({"peak": np.asarray(peaks, dtype=np.int64)})
    pq.write_table(
        pa.Table.from_pandas(df, preserve_index=False),
        path,
        compression="zstd",
        compression_level=6
    )
    return path


def plot_histogram(hist: PeakHistogram, path: Path, title: str = "") -> Path:
    path = Path(path)
    df = histogram_to_frame(hist)
    plt.figure(figsize=(5.5, 3.5))
    plt.bar(df["start"], df["count"], width=(df["end"] - df["start"]),
            align="edge", edgecolor="k", linewidth=0.5)
    plt.xlabel("peak concurrent ON gates")
    plt.ylabel("trials")
    plt.title(title or path.stem)
    plt.tight_layout()
    try:
        plt.savefig(path, dpi=300)
    finally:
        plt.close()
    return path


# ------------------------------------------------------------------------- #
def render_text(hist: PeakHistogram) -> str:
    """
    Human-readable summary, e.g.

        # Number of samples = 1000
        # Min = 3
        ...
        3 .. 4 [ 12 ]: ##
    """
    lines = [f"# Number of samples = {hist.total}"]
    if hist.total == 0:
        return "\n".join(lines)

    lines += [
        f"# Min = {hist.min}",
        f"# Max = {hist.max}",
        "#",
        f"# Mean = {hist.mean:.6f}",
        f"# Standard deviation = {hist.std:.6f}",
        "#",
    ]
    buckets = hist.buckets()
    top     = max(b.count for b in buckets)
    scale   = max(1, -(-top // BAR_WIDTH))        # ceil(top / BAR_WIDTH)
    lines.append(f"# Each # is a count of {scale}")
    lines.append("#")

    w_start = max(len(str(b.start)) for b in buckets)
    w_end   = max(len(str(b.end))   for b in buckets)
    w_count = max(len(str(b.count)) for b in buckets)
    for b in buckets:
        bar = "#" * (b.count // scale)
        lines.append(f"{b.start:>{w_start}} .. {b.end:>{w_end}} "
                     f"[ {b.count:>{w_count}} ]: {bar}")
    return "\n".join(lines)
