"""Configuration management for the budget engine.

This module centralizes the tolerances and thresholds the engine reads,
with environment variable overrides on top of ``lib/config/engine.json``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict

from .lib.config.defaults import get_config_value, get_engine_config


@dataclass(frozen=True)
class GapThresholds:
    on_track_ratio: Decimal
    attention_ratio: Decimal
    absolute_band: Decimal


@dataclass(frozen=True)
class VarianceThresholds:
    """Minimum change before an income variance counts as significant.

    Both the percentage (as a fraction) and the absolute amount must be
    reached.
    """
    percentage: Decimal
    absolute: Decimal


def _decimal_setting(raw: Any, name: str) -> Decimal:
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        raise ValueError(f"Setting {name} must be numeric, got {raw!r}") from None
    if not value.is_finite():
        raise ValueError(f"Setting {name} must be finite, got {raw!r}")
    return value


def get_epsilon() -> Decimal:
    """Currency rounding tolerance (one cent unless ``ENVBUDGET_EPSILON`` is set)."""
    override = os.getenv('ENVBUDGET_EPSILON')
    if override:
        value = _decimal_setting(override, 'ENVBUDGET_EPSILON')
    else:
        value = _decimal_setting(get_engine_config()['tolerances']['epsilon'], 'tolerances.epsilon')
    if value <= 0:
        raise ValueError(f"Epsilon must be positive, got {value}")
    return value


def get_reduction_tolerance() -> Decimal:
    raw = get_config_value('engine', 'tolerances', 'reduction_tolerance', default='0.01')
    return _decimal_setting(raw, 'tolerances.reduction_tolerance')


def get_gap_thresholds() -> GapThresholds:
    section = get_engine_config()['gap_analysis']
    return GapThresholds(
        on_track_ratio=_decimal_setting(section['on_track_ratio'], 'gap_analysis.on_track_ratio'),
        attention_ratio=_decimal_setting(section['attention_ratio'], 'gap_analysis.attention_ratio'),
        absolute_band=_decimal_setting(section['absolute_band'], 'gap_analysis.absolute_band'),
    )


def get_variance_thresholds() -> VarianceThresholds:
    section = get_engine_config()['variance']
    return VarianceThresholds(
        percentage=_decimal_setting(section['percentage_threshold'], 'variance.percentage_threshold'),
        absolute=_decimal_setting(section['absolute_threshold'], 'variance.absolute_threshold'),
    )


def get_labels(section: str, key: str) -> Dict[str, str]:
    """Get a label table such as ``('gap_analysis', 'status_labels')``."""
    return dict(get_config_value('engine', section, key, default={}) or {})
