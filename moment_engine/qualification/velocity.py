"""
Velocity: inflection, not raw volume.

Signals are binned into an hourly histogram ending at the latest signal.
The recent portion of the window is compared with the baseline; the ratio
is mapped through a piecewise curve and damped by activity and sample
size so a couple of pings cannot look like acceleration.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple
import math

import numpy as np

from ..contracts.base import clamp01, parse_iso_timestamp
from ..contracts.quality import CandidateSignal


@dataclass(frozen=True)
class VelocityOptions:
    bin_seconds: float = 3600.0
    bins: int = 12
    recent_portion: float = 0.25

    def __post_init__(self):
        if self.bin_seconds <= 0:
            raise ValueError("bin_seconds must be positive")


@dataclass(frozen=True)
class VelocityResult:
    score: float
    total_signals_used: int
    histogram: Tuple[int, ...]
    recent_sum: int
    baseline_sum: int
    recent_avg: float
    baseline_avg: float
    ratio: float


def _epoch_seconds(signals: Sequence[CandidateSignal]) -> np.ndarray:
    parsed = (parse_iso_timestamp(s.created_at) for s in signals)
    values = sorted(ts.timestamp() for ts in parsed if ts is not None)
    return np.asarray(values, dtype=float)


def _ratio_to_score(ratio: float, recent_avg: float, used: int) -> float:
    if not math.isfinite(ratio) or ratio <= 0:
        return 0.0

    if ratio < 1:
        base = 0.20
    elif ratio < 1.5:
        base = 0.35 + (ratio - 1) * 0.40
    elif ratio < 2:
        base = 0.55 + (ratio - 1.5) * 0.30
    elif ratio < 3:
        base = 0.70 + (ratio - 2) * 0.15
    elif ratio < 4:
        base = 0.85 + (ratio - 3) * 0.10
    else:
        base = 1.0

    activity_factor = clamp01(recent_avg / 2)
    sample_factor = clamp01(used / 6)
    return clamp01(base * (0.50 + 0.50 * activity_factor) * (0.60 + 0.40 * sample_factor))


def compute_velocity(
    signals: Sequence[CandidateSignal],
    options: Optional[VelocityOptions] = None
) -> VelocityResult:
    options = options or VelocityOptions()
    bins = max(4, options.bins)
    recent_portion = clamp01(options.recent_portion)

    timestamps = _epoch_seconds(signals)
    if timestamps.size == 0:
        return VelocityResult(
            score=0.0,
            total_signals_used=0,
            histogram=tuple([0] * bins),
            recent_sum=0,
            baseline_sum=0,
            recent_avg=0.0,
            baseline_avg=0.0,
            ratio=0.0,
        )

    end = float(timestamps.max())
    start = end - bins * options.bin_seconds
    window = timestamps[timestamps >= start]
    # The right edge is inclusive, so the latest signal lands in the last bin
    histogram, _ = np.histogram(window, bins=bins, range=(start, end))
    used = int(histogram.sum())

    recent_bins = max(1, int(math.floor(bins * recent_portion + 0.5)))
    baseline_bins = bins - recent_bins

    baseline_sum = int(histogram[:baseline_bins].sum())
    recent_sum = int(histogram[baseline_bins:].sum())
    baseline_avg = baseline_sum / baseline_bins if baseline_bins > 0 else 0.0
    recent_avg = recent_sum / recent_bins

    ratio = recent_avg / max(0.25, baseline_avg)

    return VelocityResult(
        score=_ratio_to_score(ratio, recent_avg, used),
        total_signals_used=used,
        histogram=tuple(int(v) for v in histogram),
        recent_sum=recent_sum,
        baseline_sum=baseline_sum,
        recent_avg=recent_avg,
        baseline_avg=baseline_avg,
        ratio=ratio,
    )
