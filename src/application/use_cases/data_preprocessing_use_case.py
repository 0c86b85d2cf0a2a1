"""
Application Use Cases - Data Preprocessing

This module contains the use case for preparing yearly emigrant series for
sequence models. It handles cleaning of loosely typed upstream rows,
chronological sorting, min/max normalization, sequence windowing and the
accuracy metrics reported after training.
"""

from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import structlog
from sklearn.metrics import mean_absolute_error, mean_squared_error

from src.domain.entities.model_metadata import NormalizationBounds
from src.domain.entities.time_series import YearlyObservation
from src.domain.entities.training_job import Metrics

logger = structlog.get_logger(__name__)

DEFAULT_LOOKBACK = 3
DEFAULT_FEATURES: Tuple[str, ...] = ("emigrants",)
DEFAULT_TARGET = "emigrants"


def _field(item: Any, name: str) -> Any:
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _is_absent(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return isinstance(value, float) and math.isnan(value)


@dataclass
class PreparedSeries:
    """Output of the full preparation chain."""

    series: List[YearlyObservation]
    normalized: List[YearlyObservation]
    bounds: Dict[str, NormalizationBounds]
    x: np.ndarray
    y: np.ndarray


class DataPreprocessingUseCase:
    """
    Prepares data for sequence-model training:
      - Sums male + female rows into yearly totals
      - Drops rows with missing or non-numeric values
      - Sorts by year (stable, duplicates kept)
      - Normalizes features to [0, 1] with min/max bounds
      - Creates lookback windows with the next value as target
    """

    def __init__(
        self,
        lookback: int = DEFAULT_LOOKBACK,
        feature_names: Sequence[str] = DEFAULT_FEATURES,
        target_name: str = DEFAULT_TARGET,
    ):
        self.lookback = int(lookback)
        self.feature_names = list(feature_names)
        self.target_name = target_name

    def execute(self, records: Sequence[Any]) -> PreparedSeries:
        """
        Run the whole chain on upstream ``{year, male, female}`` rows.

        Windowing may yield no pairs for very short series; callers decide
        whether that is enough to train.
        """
        logger.info(
            "preprocessing.start", records=len(records), lookback=self.lookback
        )

        series = self.sort_by_year(self.clean_series(self.aggregate_emigrants(records)))
        normalized, bounds = self.normalize(series, self.feature_names)
        x, y = self.window_sequences(
            normalized, self.lookback, self.feature_names, self.target_name
        )

        logger.info(
            "preprocessing.completed",
            points=len(series),
            sequences=len(x),
            first_year=series[0].year if series else None,
            last_year=series[-1].year if series else None,
        )

        return PreparedSeries(
            series=series, normalized=normalized, bounds=bounds, x=x, y=y
        )

    def aggregate_emigrants(self, records: Sequence[Any]) -> List[Dict[str, Any]]:
        """
        Convert per-sex rows into ``{year, emigrants}`` totals.

        A side that is absent counts as zero when the other side is present.
        A side holding a non-numeric value invalidates the whole row instead
        of being coerced to zero. Rows sharing a year are summed.
        """
        if not records:
            return []

        frame = pd.DataFrame(
            {
                "year": [_field(item, "year") for item in records],
                "male": [_field(item, "male") for item in records],
                "female": [_field(item, "female") for item in records],
            }
        )

        absent = frame[["male", "female"]].apply(lambda col: col.map(_is_absent))
        values = frame[["male", "female"]].apply(
            lambda col: pd.to_numeric(col.where(~col.map(_is_absent)), errors="coerce")
        )
        years = pd.to_numeric(frame["year"], errors="coerce")

        invalid_value = (values.isna() & ~absent).any(axis=1)
        both_absent = absent.all(axis=1)
        bad_year = years.isna()
        keep = ~(invalid_value | both_absent | bad_year)

        dropped = int((~keep).sum())
        if dropped:
            logger.warning(
                "preprocessing.aggregate.dropped_rows",
                dropped=dropped,
                invalid_values=int(invalid_value.sum()),
                empty_rows=int(both_absent.sum()),
                invalid_years=int(bad_year.sum()),
            )

        totals = pd.DataFrame(
            {
                "year": years[keep],
                "emigrants": values[keep].fillna(0.0).sum(axis=1),
            }
        )
        totals = totals.groupby("year", as_index=False, sort=False)["emigrants"].sum()

        return [
            {"year": row.year, "emigrants": float(row.emigrants)}
            for row in totals.itertuples(index=False)
        ]

    def clean_series(self, series: Sequence[Any]) -> List[YearlyObservation]:
        """
        Drop entries with a missing or non-numeric year or value.

        Never raises and never mutates ``series``; bad entries are logged
        and skipped.
        """
        if not series:
            return []

        frame = pd.DataFrame(
            {
                "year": pd.to_numeric(
                    pd.Series([_field(item, "year") for item in series], dtype=object),
                    errors="coerce",
                ),
                "emigrants": pd.to_numeric(
                    pd.Series(
                        [_field(item, self.target_name) for item in series],
                        dtype=object,
                    ),
                    errors="coerce",
                ),
            }
        )

        valid = (
            frame["year"].notna()
            & np.isfinite(frame["year"])
            & (frame["year"] == np.floor(frame["year"]))
            & frame["emigrants"].notna()
            & np.isfinite(frame["emigrants"])
            & (frame["emigrants"] >= 0)
        )

        dropped = int((~valid).sum())
        if dropped:
            logger.warning(
                "preprocessing.clean.dropped_rows",
                dropped=dropped,
                total=len(frame),
            )

        return [
            YearlyObservation(year=int(row.year), emigrants=float(row.emigrants))
            for row in frame[valid].itertuples(index=False)
        ]

    def sort_by_year(
        self, series: Sequence[YearlyObservation]
    ) -> List[YearlyObservation]:
        """Ascending stable sort; duplicate years keep their relative order."""
        return sorted(series, key=lambda row: row.year)

    def normalize(
        self, series: Sequence[YearlyObservation], feature_names: Sequence[str]
    ) -> Tuple[List[YearlyObservation], Dict[str, NormalizationBounds]]:
        """
        Min/max-scale each named feature into [0, 1].

        A constant feature has no span; every point then maps to 0.0 rather
        than NaN.
        """
        if not series:
            return [], {}

        bounds: Dict[str, NormalizationBounds] = {}
        for name in feature_names:
            values = [float(getattr(row, name)) for row in series]
            bounds[name] = NormalizationBounds(min=min(values), max=max(values))

        normalized = [
            dataclasses.replace(
                row,
                **{
                    name: self.scale(getattr(row, name), bounds[name])
                    for name in feature_names
                },
            )
            for row in series
        ]
        return normalized, bounds

    @staticmethod
    def scale(value: float, bounds: NormalizationBounds) -> float:
        """Map one value into [0, 1] using fixed bounds."""
        if bounds.span == 0:
            return 0.0
        return (float(value) - bounds.min) / bounds.span

    @staticmethod
    def denormalize(value: float, min_value: float, max_value: float) -> float:
        """Inverse of the min/max mapping."""
        return float(value) * (max_value - min_value) + min_value

    def window_sequences(
        self,
        series: Sequence[Any],
        lookback: int,
        feature_names: Sequence[str],
        target_name: str,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Create supervised learning sequences from a series.

        Args:
            series: Ordered observations
            lookback: Size of input windows
            feature_names: Attributes projected into each window row
            target_name: Attribute of the element following the window

        Returns:
            Tuple of (x with shape (pairs, lookback, features), y with shape
            (pairs,)), where pairs = max(0, len(series) - lookback)
        """
        n_features = len(feature_names)
        if lookback <= 0 or len(series) < lookback + 1:
            return (
                np.empty((0, max(lookback, 0), n_features), dtype=np.float32),
                np.empty((0,), dtype=np.float32),
            )

        matrix = np.array(
            [[float(_field(row, name)) for name in feature_names] for row in series],
            dtype=np.float32,
        )
        targets = np.array(
            [float(_field(row, target_name)) for row in series], dtype=np.float32
        )

        x_seq, y_seq = [], []
        for i in range(len(series) - lookback):
            x_seq.append(matrix[i : i + lookback])
            y_seq.append(targets[i + lookback])

        return np.array(x_seq, dtype=np.float32), np.array(y_seq, dtype=np.float32)


def compute_metrics(
    actual: Sequence[float], predicted: Sequence[float]
) -> Metrics:
    """
    Compute accuracy metrics for two equal-length series.

    MAPE skips terms whose actual value is zero. When the actual series is
    constant, R² is 1.0 for exact predictions and 0.0 otherwise; MAPE over an
    all-zero actual series follows the same convention (0 or 100).

    Raises:
        ValueError: If the series are empty or of different lengths.
    """
    y_true = np.asarray(actual, dtype=np.float64).ravel()
    y_pred = np.asarray(predicted, dtype=np.float64).ravel()

    if y_true.size == 0:
        raise ValueError("Cannot compute metrics on empty series")
    if y_true.shape != y_pred.shape:
        raise ValueError(
            f"Series length mismatch: {y_true.size} actual vs {y_pred.size} predicted"
        )

    exact = bool(np.array_equal(y_true, y_pred))

    mae = float(mean_absolute_error(y_true, y_pred))
    rmse = float(np.sqrt(mean_squared_error(y_true, y_pred)))

    mask = y_true != 0
    if np.any(mask):
        mape = float(
            np.mean(np.abs(y_true[mask] - y_pred[mask]) / np.abs(y_true[mask])) * 100.0
        )
    else:
        mape = 0.0 if exact else 100.0

    ss_res = float(np.sum((y_true - y_pred) ** 2))
    ss_tot = float(np.sum((y_true - np.mean(y_true)) ** 2))
    if ss_tot == 0:
        r2 = 1.0 if exact else 0.0
    else:
        r2 = 1.0 - ss_res / ss_tot

    accuracy = round(min(100.0, max(0.0, 100.0 - mape)), 2)

    return Metrics(mae=mae, rmse=rmse, mape=mape, r2=r2, accuracy=accuracy)


def metrics_or_none(
    actual: Sequence[float], predicted: Sequence[float]
) -> Optional[Metrics]:
    """Metrics for possibly empty series, e.g. an empty validation tail."""
    if len(actual) == 0:
        return None
    return compute_metrics(actual, predicted)
