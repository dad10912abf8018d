"""
Tests for alert decisions and the bounded alert log.

Covers:
- Full-reading alerts against threshold, activity and enabled vitals
- Live per-vital transitions (new, repeated, escalated, recovered)
- Retention order and acknowledgement
"""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from vitalcheck.domain.models import Alert, MetricName, MonitoringConfig, Severity, VitalSign
from vitalcheck.services.alert_policy import AlertLog, AlertPolicy
from vitalcheck.services.metric_evaluator import assess_reading, assess_vital


def _oxygen(value: float):
    return assess_vital(VitalSign.OXYGEN_LEVEL, {MetricName.OXYGEN_LEVEL: value})


class TestReadingAlerts:
    def test_warning_at_default_threshold_raises_one_alert(self, make_reading) -> None:
        policy = AlertPolicy()
        assessments = assess_reading(make_reading(heart_rate=110))

        alert = policy.evaluate_reading(Severity.WARNING, assessments)

        assert alert is not None
        assert alert.severity is Severity.WARNING
        assert alert.source == "reading"
        assert alert.message.startswith("ATTENTION:")
        assert alert.seen is False
        assert set(alert.metrics) == set(MetricName)

    def test_normal_reading_raises_nothing(self, make_reading) -> None:
        assessments = assess_reading(make_reading())

        assert AlertPolicy().evaluate_reading(Severity.NORMAL, assessments) is None

    def test_below_threshold_suppressed(self, make_reading) -> None:
        policy = AlertPolicy(MonitoringConfig(alert_threshold=Severity.CRITICAL))
        assessments = assess_reading(make_reading(heart_rate=110))

        assert policy.evaluate_reading(Severity.WARNING, assessments) is None
        assert policy.evaluate_reading(Severity.CRITICAL, assessments) is not None

    def test_inactive_monitoring_suppresses_everything(self, make_reading) -> None:
        policy = AlertPolicy(MonitoringConfig(is_active=False))
        assessments = assess_reading(make_reading(heart_rate=150))

        assert policy.evaluate_reading(Severity.CRITICAL, assessments) is None

    def test_alert_metrics_exclude_disabled_vitals(self, make_reading) -> None:
        policy = AlertPolicy(MonitoringConfig(blood_pressure=False))
        assessments = assess_reading(make_reading(heart_rate=110))

        alert = policy.evaluate_reading(Severity.WARNING, assessments)

        assert alert is not None
        assert MetricName.BLOOD_PRESSURE_SYSTOLIC not in alert.metrics
        assert MetricName.BLOOD_PRESSURE_DIASTOLIC not in alert.metrics
        assert MetricName.HEART_RATE in alert.metrics


class TestVitalTransitions:
    def test_normal_to_warning_raises_exactly_one_alert(self) -> None:
        policy = AlertPolicy()

        alert = policy.evaluate_vital(
            VitalSign.OXYGEN_LEVEL, Severity.NORMAL, Severity.WARNING, _oxygen(93)
        )

        assert alert is not None
        assert alert.source == "oxygen_level"
        assert alert.message == "Oxygen Level: 93 %"

    def test_repeated_critical_is_not_duplicated(self) -> None:
        policy = AlertPolicy()

        first = policy.evaluate_vital(
            VitalSign.OXYGEN_LEVEL, Severity.NORMAL, Severity.CRITICAL, _oxygen(88)
        )
        repeat = policy.evaluate_vital(
            VitalSign.OXYGEN_LEVEL, Severity.CRITICAL, Severity.CRITICAL, _oxygen(88)
        )

        assert first is not None
        assert repeat is None

    def test_warning_to_critical_raises_new_alert(self) -> None:
        alert = AlertPolicy().evaluate_vital(
            VitalSign.OXYGEN_LEVEL, Severity.WARNING, Severity.CRITICAL, _oxygen(85)
        )

        assert alert is not None
        assert alert.severity is Severity.CRITICAL

    def test_recovery_to_normal_is_silent(self) -> None:
        alert = AlertPolicy().evaluate_vital(
            VitalSign.OXYGEN_LEVEL, Severity.WARNING, Severity.NORMAL, _oxygen(98)
        )

        assert alert is None

    def test_disabled_vital_never_alerts(self) -> None:
        policy = AlertPolicy(MonitoringConfig(oxygen_level=False))

        alert = policy.evaluate_vital(
            VitalSign.OXYGEN_LEVEL, Severity.NORMAL, Severity.CRITICAL, _oxygen(85)
        )

        assert alert is None

    def test_blood_pressure_message_shows_both_values(self) -> None:
        assessments = assess_vital(
            VitalSign.BLOOD_PRESSURE,
            {
                MetricName.BLOOD_PRESSURE_SYSTOLIC: 160.0,
                MetricName.BLOOD_PRESSURE_DIASTOLIC: 100.0,
            },
        )

        alert = AlertPolicy().evaluate_vital(
            VitalSign.BLOOD_PRESSURE, Severity.NORMAL, Severity.WARNING, assessments
        )

        assert alert is not None
        assert alert.message == "Blood Pressure: 160/100 mmHg"


class TestAlertLog:
    @given(count=st.integers(min_value=0, max_value=250))
    def test_retains_most_recent_in_order(self, count: int) -> None:
        log = AlertLog(max_entries=100)
        alerts = [Alert(severity=Severity.WARNING, message=str(i)) for i in range(count)]

        for alert in alerts:
            log.append(alert)

        assert len(log) == min(count, 100)
        assert log.entries() == alerts[-100:]

    def test_unread_count_and_mark_seen(self) -> None:
        log = AlertLog([Alert(severity=Severity.WARNING, message=str(i)) for i in range(3)])
        target = log.entries()[1]

        assert log.unread_count() == 3
        assert log.mark_seen(target.id) is True
        assert log.unread_count() == 2
        assert log.entries()[1].seen is True
        assert [a.message for a in log.entries()] == ["0", "1", "2"]

    def test_mark_seen_unknown_id(self) -> None:
        assert AlertLog().mark_seen("missing") is False

    def test_mark_all_seen_reports_changes(self) -> None:
        log = AlertLog([Alert(severity=Severity.WARNING, message=str(i)) for i in range(4)])
        log.mark_seen(log.entries()[0].id)

        assert log.mark_all_seen() == 3
        assert log.unread_count() == 0
        assert log.mark_all_seen() == 0

    @pytest.mark.parametrize("max_entries", [1, 5])
    def test_initial_alerts_are_trimmed(self, max_entries: int) -> None:
        alerts = [Alert(severity=Severity.WARNING, message=str(i)) for i in range(10)]

        log = AlertLog(alerts, max_entries=max_entries)

        assert log.max_entries == max_entries
        assert log.entries() == alerts[-max_entries:]
