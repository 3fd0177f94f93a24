import json

import numpy as np
import pandas as pd

import report
from peak_hist import PeakHistogram


def _hist(values, buckets=4):
    h = PeakHistogram(buckets)
    for v in values:
        h.add(v)
    return h


def test_histogram_to_json_records(tmp_path):
    h = _hist([1, 2, 2, 3, 8])
    path = report.histogram_to_json(h, tmp_path / "random.json")
    data = json.loads(path.read_text())
    assert [set(r) for r in data] == [{"start", "end", "count"}] * 4
    assert data[0] == {"start": 1, "end": 3, "count": 3}
    assert sum(r["count"] for r in data) == 5


def test_histogram_to_csv(tmp_path):
    h = _hist([5, 6, 7])
    path = report.histogram_to_csv(h, tmp_path / "h.csv")
    df = pd.read_csv(path)
    assert list(df.columns) == ["start", "end", "count"]
    assert df["count"].sum() == 3


def test_save_peaks_parquet(tmp_path):
    peaks = np.array([4, 9, 1, 9])
    path = report.save_peaks(peaks, tmp_path / "p.parquet")
    df = pd.read_parquet(path)
    assert df["peak"].tolist() == [4, 9, 1, 9]


def test_plot_histogram(tmp_path):
    path = report.plot_histogram(_hist([1, 1, 4, 9]), tmp_path / "h.png")
    assert path.exists() and path.stat().st_size > 0


def test_render_text():
    text = report.render_text(_hist([2, 4, 4, 4, 5, 5, 7, 9]))
    lines = text.splitlines()
    assert lines[0] == "# Number of samples = 8"
    assert "# Min = 2" in lines
    assert "# Max = 9" in lines
    assert any(line.startswith("# Mean = 5.0") for line in lines)
    bucket_lines = [l for l in lines if ".." in l]
    assert len(bucket_lines) == 4
    # columns are right-aligned to the widest value ("10")
    assert bucket_lines[0] == "2 ..  4 [ 1 ]: #"
    assert bucket_lines[1] == "4 ..  6 [ 5 ]: #####"


def test_render_text_empty():
    assert report.render_text(PeakHistogram()) == "# Number of samples = 0"
