"""
Per-metric severity evaluation against normal and critical bands.

A value inside the normal band (inclusive) is normal, a value outside the
critical band is critical, and anything in between is a warning. Bands are
constant tables validated at import time.
"""

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, model_validator

from vitalcheck.domain.models import (
    MetricAssessment,
    MetricName,
    Reading,
    Severity,
    VitalSign,
)


class Band(BaseModel):
    """Inclusive numeric range."""

    model_config = ConfigDict(frozen=True)

    min: float
    max: float

    @model_validator(mode="after")
    def min_not_above_max(self) -> "Band":
        if self.min > self.max:
            raise ValueError(f"band min {self.min} is above max {self.max}")
        return self

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


class MetricBands(BaseModel):
    """Normal band nested inside a critical band."""

    model_config = ConfigDict(frozen=True)

    normal: Band
    critical: Band

    @model_validator(mode="after")
    def critical_contains_normal(self) -> "MetricBands":
        if self.critical.min > self.normal.min or self.critical.max < self.normal.max:
            raise ValueError("critical band must be a superset of the normal band")
        return self


def _bands(normal: tuple[float, float], critical: tuple[float, float]) -> MetricBands:
    return MetricBands(
        normal=Band(min=normal[0], max=normal[1]),
        critical=Band(min=critical[0], max=critical[1]),
    )


DEFAULT_BANDS: Mapping[MetricName, MetricBands] = {
    MetricName.HEART_RATE: _bands((60, 100), (40, 140)),
    MetricName.BLOOD_PRESSURE_SYSTOLIC: _bands((90, 129), (70, 180)),
    MetricName.BLOOD_PRESSURE_DIASTOLIC: _bands((60, 84), (40, 120)),
    MetricName.OXYGEN_LEVEL: _bands((95, 100), (90, 100)),
    MetricName.TEMPERATURE: _bands((36.1, 37.2), (35, 38.5)),
}


def evaluate_metric(value: float, bands: MetricBands) -> Severity:
    """Classify one scalar value. Never raises."""
    if bands.normal.contains(value):
        return Severity.NORMAL
    if value < bands.critical.min or value > bands.critical.max:
        return Severity.CRITICAL
    return Severity.WARNING


def assess_metric(
    metric: MetricName,
    value: float,
    bands: Mapping[MetricName, MetricBands] = DEFAULT_BANDS,
) -> MetricAssessment:
    return MetricAssessment(
        metric=metric, value=value, severity=evaluate_metric(value, bands[metric])
    )


def assess_reading(
    reading: Reading,
    bands: Mapping[MetricName, MetricBands] = DEFAULT_BANDS,
) -> dict[MetricName, MetricAssessment]:
    """Assess all five metrics of a reading."""
    return {metric: assess_metric(metric, reading.value_of(metric), bands) for metric in MetricName}


def assess_vital(
    vital: VitalSign,
    values: Mapping[MetricName, float],
    bands: Mapping[MetricName, MetricBands] = DEFAULT_BANDS,
) -> dict[MetricName, MetricAssessment]:
    """
    Assess the metrics of one vital sign that are present in `values`.

    Blood pressure may be supplied as systolic, diastolic or both.
    """
    return {
        metric: assess_metric(metric, values[metric], bands)
        for metric in vital.metrics
        if metric in values
    }

