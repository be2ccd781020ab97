from __future__ import annotations

from dataclasses import dataclass, fields, replace
from math import isfinite
from typing import Any, Mapping


@dataclass(frozen=True)
class AnalyticsThresholds:
    """Tunable constants used by the analytics heuristics.

    Defaults match the behaviour users see in the dashboard. Override
    individual values with :meth:`from_mapping`, typically from the
    ``ANALYTICS_THRESHOLDS`` Flask config key.
    """

    # Cost efficiency
    baseline_cost_per_hour: float = 3.5
    excellent_max_cost_per_hour: float = 1.0
    good_max_cost_per_hour: float = 3.0
    fair_max_cost_per_hour: float = 5.0

    # ROI: $70, 15h, 9/10 lands at roughly 10
    roi_rating_base: float = 1.5
    roi_reference_rating: float = 9.0
    roi_reference_weight: float = 10.0
    roi_hours_factor: float = 4.67
    roi_min_price: float = 1.0
    roi_excellent: float = 15.0
    roi_good: float = 7.5
    roi_fair: float = 3.0

    # Period comparisons
    trend_deadband_hours: float = 0.5

    # Summary superlatives
    best_value_min_hours: float = 5.0
    worst_value_min_hours: float = 2.0

    # Rotation health, in days since the last session
    rotation_active_days: int = 14
    rotation_cooling_min_days: int = 30
    rotation_cooling_max_days: int = 60
    rotation_cooling_min_hours: float = 5.0

    # Session length buckets
    marathon_session_hours: float = 3.0
    quick_session_hours: float = 1.0

    # Regret purchases and shelf warmers
    regret_min_price: float = 20.0
    regret_daily_hours: float = 0.5
    regret_max_expected_hours: float = 50.0
    regret_min_score: float = 5.0
    shelf_warmer_min_days: int = 30

    # Session style, in sessions per week
    consistent_sessions_per_week: float = 5.0
    occasional_sessions_per_week: float = 2.0
    weekend_min_average_hours: float = 2.0

    # Completion probability
    probability_recent_days: int = 7
    probability_month_days: int = 30
    probability_idle_days: int = 90
    probability_high_rating: float = 8.0
    probability_low_rating: float = 5.0
    probability_min_genre_peers: int = 2
    probability_likely: float = 70.0
    probability_possible: float = 40.0

    # Hidden gems, regrets and money
    gem_min_hours: float = 10.0
    gem_max_price: float = 20.0
    gem_min_rating: float = 7.0
    regret_low_rating: float = 6.0
    target_cost_per_hour: float = 2.0
    impulse_max_days: int = 7
    planned_min_days: int = 30
    wasted_min_price: float = 20.0
    wasted_max_hours: float = 3.0
    bargain_min_hours: float = 10.0
    bargain_min_rating: float = 7.0

    # Backlog projections
    backlog_lookback_months: float = 6.0
    estimated_hours_per_game: float = 20.0

    # Milestones and fun stats
    century_hours: float = 100.0
    half_century_hours: float = 50.0
    quick_fix_max_hours: float = 10.0
    committed_min_hours: float = 10.0
    patient_min_discount: float = 0.3

    # Genre rut
    genre_rut_share: float = 60.0
    genre_rut_lookback_days: int = 90

    top_limit: int = 5

    @classmethod
    def from_mapping(cls, overrides: Mapping[str, Any] | None) -> "AnalyticsThresholds":
        if not overrides:
            return DEFAULT_THRESHOLDS

        known = {field.name: field for field in fields(cls)}
        updates: dict[str, Any] = {}
        for key, raw_value in overrides.items():
            field = known.get(key)
            if field is None:
                allowed = ", ".join(sorted(known))
                raise ValueError(f"Unknown analytics threshold {key!r}; expected one of {allowed}.")
            try:
                value = float(raw_value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Threshold {key!r} must be numeric.") from exc
            if not isfinite(value):
                raise ValueError(f"Threshold {key!r} must be finite.")
            if value < 0:
                raise ValueError(f"Threshold {key!r} must not be negative.")
            default_value = getattr(DEFAULT_THRESHOLDS, key)
            updates[key] = int(value) if isinstance(default_value, int) else value

        return replace(DEFAULT_THRESHOLDS, **updates)


DEFAULT_THRESHOLDS = AnalyticsThresholds()


def resolve_thresholds(thresholds: AnalyticsThresholds | None) -> AnalyticsThresholds:
    return thresholds if thresholds is not None else DEFAULT_THRESHOLDS
