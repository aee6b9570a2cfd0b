"""
StatsService - Statistical calculations for percentiles, standard scores and
cohort summaries.

Provides pure statistical functions with no side effects. Every function
accepts an empty population and returns 0 rather than raising.

Quantiles are positional: the element at index floor(n * q) of the ascending
sort, with no interpolation. Cohort summaries and the library thresholds share
it, so for even n the median is the upper middle element. Hit rate instead uses
rank_quantile(), the smallest value ranked at or above the requested percentile.
"""

import math
from bisect import bisect_right
from typing import Dict, List, Sequence, Tuple

import numpy as np
from scipy import stats as scipy_stats


class StatsService:
    """
    Statistical calculations service.

    Provides statistical methods for:
    - Percentile rank and z-score of a value within a population
    - Positional (non-interpolated) quantiles and cohort summaries
    - Z-score and percentile outlier detection
    """

    @staticmethod
    def calculate_percentile(value: float, values: Sequence[float]) -> float:
        """
        Calculate percentile rank of a value.

        Uses the fraction of the population less than or equal to the value,
        so ties count in the value's favour.

        Args:
            value: Value to rank
            values: List of all values (any order)

        Returns:
            Percentile (0-100)

        Example:
            >>> StatsService.calculate_percentile(30, [10, 20, 30, 40, 50])
            60.0
        """
        if not values:
            return 0.0

        sorted_values = sorted(values)
        rank = sum(1 for v in sorted_values if v <= value)
        return (rank / len(sorted_values)) * 100

    @staticmethod
    def calculate_zscore(
        value: float,
        values: Sequence[float],
        use_trimmed: bool = False,
        trim_percent: float = 10.0
    ) -> float:
        """
        Calculate z-score for a single value.

        Uses the population standard deviation. A population with zero
        variance gives 0.0 for every member.

        Args:
            value: Value to calculate z-score for
            values: List of all values
            use_trimmed: Whether to use trimmed mean/std (default: False)
            trim_percent: Percent to trim from each end if use_trimmed=True

        Returns:
            Z-score
        """
        if not values:
            return 0.0

        scores = np.asarray(values, dtype=float)

        # Identical values: float rounding in mean/std must not leak a nonzero score
        if np.ptp(scores) == 0:
            return 0.0

        if use_trimmed:
            mean, std = StatsService.trimmed_mean_std(scores, trim_percent)
        else:
            mean = float(np.mean(scores))
            std = float(np.std(scores))

        if std == 0 or not math.isfinite(std):
            return 0.0

        return float((value - mean) / std)

    @staticmethod
    def calculate_zscores(values: Sequence[float]) -> List[float]:
        """
        Z-score of every value against the whole population, in input order.

        Same result as calculate_zscore() per element, computed in one pass.
        """
        if not values:
            return []

        scores = np.asarray(values, dtype=float)
        if np.ptp(scores) == 0:
            return [0.0] * len(scores)

        std = float(np.std(scores))
        if std == 0 or not math.isfinite(std):
            return [0.0] * len(scores)

        return [float(z) for z in (scores - float(np.mean(scores))) / std]

    @staticmethod
    def trimmed_mean_std(values: Sequence[float], trim_percent: float = 10.0) -> Tuple[float, float]:
        """
        Trimmed mean and sample standard deviation.

        Returns (0.0, 0.0) when fewer than two values survive trimming.
        """
        scores = np.asarray(values, dtype=float)
        if len(scores) < 2:
            return 0.0, 0.0

        trim_fraction = trim_percent / 100.0
        trimmed_mean = float(scipy_stats.trim_mean(scores, trim_fraction))

        sorted_scores = np.sort(scores)
        n = len(sorted_scores)
        lower_cut = int(n * trim_fraction)
        upper_cut = n - lower_cut
        trimmed_scores = sorted_scores[lower_cut:upper_cut]
        if len(trimmed_scores) < 2:
            return trimmed_mean, 0.0

        return trimmed_mean, float(np.std(trimmed_scores, ddof=1))

    @staticmethod
    def positional_quantile(values: Sequence[float], q: float) -> float:
        """
        Non-interpolated quantile: element at floor(n * q) of the ascending sort.

        Example:
            >>> StatsService.positional_quantile([1, 2], 0.5)
            2
        """
        if not values:
            return 0.0

        sorted_values = sorted(values)
        index = min(int(math.floor(len(sorted_values) * q)), len(sorted_values) - 1)
        return sorted_values[max(index, 0)]

    @staticmethod
    def rank_quantile(values: Sequence[float], q: float) -> float:
        """
        Smallest value whose calculate_percentile() rank reaches q * 100.

        Consistent with calculate_percentile(): every value at or above the
        result ranks at the q-th percentile or higher.

        Example:
            >>> StatsService.rank_quantile([1, 2, 3, 4], 0.75)
            3
        """
        if not values:
            return 0.0

        sorted_values = sorted(values)
        n = len(sorted_values)
        for value in sorted_values:
            if (bisect_right(sorted_values, value) / n) * 100 >= q * 100:
                return value
        return sorted_values[-1]

    @staticmethod
    def summarize(values: Sequence[float]) -> Dict[str, object]:
        """
        Positional summary used by cohort buckets.

        Returns:
            Dictionary with count, average, median, q1, q3, min, max and the
            ascending values. All statistics are 0 for an empty input.
        """
        if not values:
            return {
                "count": 0,
                "average": 0.0,
                "median": 0.0,
                "q1": 0.0,
                "q3": 0.0,
                "min": 0.0,
                "max": 0.0,
                "values": [],
            }

        sorted_values = sorted(float(v) for v in values)
        n = len(sorted_values)

        return {
            "count": n,
            "average": sum(sorted_values) / n,
            "median": sorted_values[n // 2],
            "q1": sorted_values[int(math.floor(n * 0.25))],
            "q3": sorted_values[int(math.floor(n * 0.75))],
            "min": sorted_values[0],
            "max": sorted_values[-1],
            "values": sorted_values,
        }

    @staticmethod
    def percentile_thresholds(values: Sequence[float]) -> Dict[str, float]:
        """Positional p10/p50/p90, used to describe a library metric."""
        return {
            "p10": float(StatsService.positional_quantile(values, 0.1)),
            "p50": float(StatsService.positional_quantile(values, 0.5)),
            "p90": float(StatsService.positional_quantile(values, 0.9)),
        }

    @staticmethod
    def calculate_zscore_outliers(
        values: Sequence[float],
        threshold: float = 2.0,
        trim_percent: float = 10.0
    ) -> List[Tuple[int, float]]:
        """
        Indices whose trimmed z-score reaches the threshold.

        The mean and std come from trimmed_mean_std(), so one runaway video
        does not hide the others. Flat populations have no outliers.
        """
        if len(values) < 2:
            return []

        scores = np.asarray(values, dtype=float)
        center, spread = StatsService.trimmed_mean_std(scores, trim_percent)
        if spread == 0 or np.ptp(scores) == 0:
            return []

        return [
            (index, float(z))
            for index, z in enumerate((scores - center) / spread)
            if z >= threshold
        ]

    @staticmethod
    def calculate_percentile_outliers(
        values: Sequence[float],
        threshold: float = 10.0
    ) -> List[Tuple[int, float, float]]:
        """
        Values in the top `threshold` percent, as (index, value, percentile).

        The cutoff is the positional quantile at 1 - threshold / 100.
        """
        if len(values) < 2:
            return []

        cutoff = StatsService.positional_quantile(values, 1 - threshold / 100.0)
        return [
            (index, float(value), StatsService.calculate_percentile(value, values))
            for index, value in enumerate(values)
            if value >= cutoff
        ]
