"""
peak_hist.py
============
Fixed-bucket-count histogram of per-trial peak-overlap values.

Values are inserted one per trial with :meth:`PeakHistogram.add`.  When the
histogram is frozen (explicitly, or by the first call to
:meth:`PeakHistogram.buckets`) the bucket boundaries are fixed to span the
observed range [min, max] with ``num_buckets`` equal integer-width buckets

    w        = max(1, ceil((max - min + 1) / num_buckets))
    bucket i = [min + i*w, min + (i+1)*w)

so every inserted value lands in exactly one bucket.  After that the
histogram is read-only.
"""

from __future__ import annotations
import math
from typing import NamedTuple

import numpy as np

DEFAULT_BUCKETS = 20


class Bucket(NamedTuple):
    start: int
    end:   int
    count: int


class PeakHistogram:

    def __init__(self, num_buckets: int = DEFAULT_BUCKETS):
        if num_buckets < 1:
            raise ValueError(f"num_buckets must be >= 1, got {num_buckets}")
        self.num_buckets = num_buckets
        self._values: list[int] = []
        self._buckets: tuple[Bucket, ...] | None = None

    # ------------------------------------------------------------------ #
    def add(self, value: int) -> None:
        if self._buckets is not None:
            raise RuntimeError("histogram is frozen; no more values accepted")
        value = int(value)
        if value < 0:
            raise ValueError(f"peak values are non-negative, got {value}")
        self._values.append(value)

    def freeze(self) -> tuple[Bucket, ...]:
        if self._buckets is None:
            self._buckets = self._bin()
        return self._buckets

    @property
    def frozen(self) -> bool:
        return self._buckets is not None

    def buckets(self) -> tuple[Bucket, ...]:
        return self.freeze()

    def _bin(self) -> tuple[Bucket, ...]:
        if not self._values:
            return ()
        vals = np.asarray(self._values, dtype=np.int64)
        lo, hi = int(vals.min()), int(vals.max())
        width = max(1, math.ceil((hi - lo + 1) / self.num_buckets))
        edges = lo + width * np.arange(self.num_buckets + 1, dtype=np.int64)
        # last edge lies beyond hi, so np.histogram's closed last bin is harmless
        counts, _ = np.histogram(vals, bins=edges)
        return tuple(Bucket(int(edges[i]), int(edges[i + 1]), int(counts[i]))
                     for i in range(self.num_buckets))

    # ------------------------------------------------------------------ #
    @property
    def total(self) -> int:
        return len(self._values)

    @property
    def min(self) -> int | None:
        return min(self._values) if self._values else None

    @property
    def max(self) -> int | None:
        return max(self._values) if self._values else None

    @property
    def mean(self) -> float:
        return float(np.mean(self._values)) if self._values else math.nan

    @property
    def std(self) -> float:
        return float(np.std(self._values)) if self._values else math.nan

    def __len__(self) -> int:
        return self.total

    def __repr__(self) -> str:
        return (f"PeakHistogram(num_buckets={self.num_buckets}, "
                f"total={self.total}, frozen={self.frozen})")
