"""
Tests for the domain models.

Covers:
- Severity ordering and classifier label mapping
- Reading validation and feature order
- Alert immutability and acknowledgement
- MonitoringConfig vital flags
"""

from datetime import UTC, datetime

import pytest
from hypothesis import given
from hypothesis import strategies as st
from pydantic import ValidationError

from vitalcheck.domain.models import (
    Alert,
    MetricName,
    MonitoringConfig,
    Reading,
    Severity,
    VitalSign,
    worst_severity,
)


class TestSeverity:
    def test_total_order(self) -> None:
        assert Severity.NORMAL < Severity.WARNING < Severity.CRITICAL
        assert Severity.CRITICAL >= Severity.WARNING
        assert Severity.WARNING <= Severity.WARNING

    def test_order_is_not_alphabetical(self) -> None:
        # "critical" < "normal" as strings, but not as severities
        assert Severity.CRITICAL > Severity.NORMAL
        assert max(Severity.NORMAL, Severity.CRITICAL) is Severity.CRITICAL

    @pytest.mark.parametrize(
        ("label", "expected"),
        [(0, Severity.NORMAL), (1, Severity.WARNING), (2, Severity.CRITICAL), (7, Severity.NORMAL)],
    )
    def test_from_label(self, label: int, expected: Severity) -> None:
        assert Severity.from_label(label) is expected

    def test_worst_severity_of_nothing_is_normal(self) -> None:
        assert worst_severity([]) is Severity.NORMAL

    @given(st.lists(st.sampled_from(list(Severity)), min_size=1))
    def test_worst_severity_is_an_upper_bound(self, severities: list[Severity]) -> None:
        worst = worst_severity(severities)
        assert worst in severities
        assert all(s <= worst for s in severities)


class TestReading:
    def test_features_follow_metric_order(self) -> None:
        reading = Reading(
            heart_rate=70,
            blood_pressure_systolic=110,
            blood_pressure_diastolic=70,
            oxygen_level=98,
            temperature=36.6,
        )

        assert reading.features() == [70.0, 110.0, 70.0, 98.0, 36.6]
        assert reading.value_of(MetricName.OXYGEN_LEVEL) == 98.0
        assert reading.observed_at.tzinfo == UTC

    def test_non_finite_values_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Reading(
                heart_rate=70,
                blood_pressure_systolic=float("nan"),
                blood_pressure_diastolic=70,
                oxygen_level=98,
                temperature=36.6,
            )

    def test_reading_immutability(self) -> None:
        reading = Reading(
            heart_rate=70,
            blood_pressure_systolic=110,
            blood_pressure_diastolic=70,
            oxygen_level=98,
            temperature=36.6,
        )

        with pytest.raises(ValidationError, match="frozen"):
            reading.heart_rate = 80  # type: ignore


class TestAlert:
    def test_acknowledged_returns_seen_copy(self) -> None:
        alert = Alert(severity=Severity.WARNING, message="check in")

        seen = alert.acknowledged()

        assert seen.seen is True
        assert alert.seen is False
        assert seen.id == alert.id
        assert seen.timestamp == alert.timestamp

    def test_alert_ids_are_unique(self) -> None:
        ids = {Alert(severity=Severity.WARNING, message="m").id for _ in range(50)}
        assert len(ids) == 50

    def test_alert_round_trips_through_json(self) -> None:
        alert = Alert(
            severity=Severity.CRITICAL,
            message="m",
            timestamp=datetime(2024, 5, 1, tzinfo=UTC),
            source="blood_pressure",
        )

        assert Alert.model_validate_json(alert.model_dump_json()) == alert


class TestMonitoringConfig:
    def test_defaults(self) -> None:
        config = MonitoringConfig()

        assert config.is_active is True
        assert config.alert_threshold is Severity.WARNING
        assert config.enabled_vitals() == list(VitalSign)
        assert config.weight is False

    def test_disabled_vital(self) -> None:
        config = MonitoringConfig(temperature=False)

        assert not config.is_enabled(VitalSign.TEMPERATURE)
        assert VitalSign.TEMPERATURE not in config.enabled_vitals()

    def test_invalid_schedule_rejected(self) -> None:
        with pytest.raises(ValidationError):
            MonitoringConfig(schedule="every-second")  # type: ignore[arg-type]


def test_blood_pressure_groups_two_metrics() -> None:
    assert VitalSign.BLOOD_PRESSURE.metrics == (
        MetricName.BLOOD_PRESSURE_SYSTOLIC,
        MetricName.BLOOD_PRESSURE_DIASTOLIC,
    )
