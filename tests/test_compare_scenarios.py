import json

import pytest

import compare_scenarios
import report
from peak_hist import PeakHistogram


def _write(path, values, buckets=4):
    h = PeakHistogram(buckets)
    for v in values:
        h.add(v)
    report.histogram_to_json(h, path)


def test_build_dataframe(tmp_path):
    _write(tmp_path / "random.json", [3, 4, 4, 6, 9])
    _write(tmp_path / "pct_0.5_groups_1.json", [10, 12, 20])
    (tmp_path / "other.json").write_text(json.dumps({"pk": 90}))
    (tmp_path / "broken.json").write_text("{not json")

    df = compare_scenarios.build_dataframe(tmp_path)
    assert set(df["scenario"]) == {"random", "pct_0.5_groups_1"}
    assert list(df.columns) == ["scenario", "start", "end", "count", "fraction"]
    for _, sub in df.groupby("scenario"):
        assert sub["fraction"].sum() == pytest.approx(1.0)


def test_build_dataframe_without_results(tmp_path):
    with pytest.raises(RuntimeError):
        compare_scenarios.build_dataframe(tmp_path)


def test_plot_comparison(tmp_path):
    _write(tmp_path / "random.json", [1, 2, 3])
    df = compare_scenarios.build_dataframe(tmp_path)
    png = tmp_path / "cmp.png"
    compare_scenarios.plot_comparison(df, png)
    assert png.exists()
