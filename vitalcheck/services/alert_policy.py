"""
Alert policy and bounded alert log.

Two paths raise alerts:
- Full-reading analysis: one alert per analysis at or above the threshold,
  aggregating the assessments of every enabled vital sign.
- Live per-vital updates: an alert only when a vital's status changes to a
  non-normal severity. Exact repetition is suppressed; any change, including
  warning -> critical, re-alerts.
"""

from collections import deque
from collections.abc import Iterable, Mapping

import structlog

from vitalcheck.domain.models import (
    Alert,
    MetricAssessment,
    MetricName,
    MonitoringConfig,
    Severity,
    VitalSign,
)
from vitalcheck.services.explanation import alert_message

logger = structlog.get_logger(__name__)

_VITAL_LABELS = {
    VitalSign.HEART_RATE: "Heart Rate",
    VitalSign.BLOOD_PRESSURE: "Blood Pressure",
    VitalSign.OXYGEN_LEVEL: "Oxygen Level",
    VitalSign.TEMPERATURE: "Temperature",
}


def _describe_vital(vital: VitalSign, assessments: Mapping[MetricName, MetricAssessment]) -> str:
    values = [f"{a.value:g}" for a in assessments.values()]
    if vital is VitalSign.BLOOD_PRESSURE:
        return f"{_VITAL_LABELS[vital]}: {'/'.join(values)} mmHg"
    units = {
        VitalSign.HEART_RATE: "bpm",
        VitalSign.OXYGEN_LEVEL: "%",
        VitalSign.TEMPERATURE: "°C",
    }
    return f"{_VITAL_LABELS[vital]}: {values[0]} {units[vital]}"


class AlertPolicy:
    """Decides whether a newly computed severity warrants an alert."""

    def __init__(self, config: MonitoringConfig | None = None) -> None:
        self.config = config or MonitoringConfig()
        self.logger = logger.bind(component="alert_policy")

    def _meets_threshold(self, severity: Severity) -> bool:
        return self.config.is_active and severity >= self.config.alert_threshold

    def evaluate_reading(
        self, severity: Severity, assessments: Mapping[MetricName, MetricAssessment]
    ) -> Alert | None:
        """Full-reading path: at most one alert per analysis."""
        if not self._meets_threshold(severity):
            self.logger.debug(
                "reading_alert_suppressed",
                severity=severity.value,
                threshold=self.config.alert_threshold.value,
                active=self.config.is_active,
            )
            return None

        # Copies, so later state changes never leak into the alert
        metrics = {
            metric: assessments[metric].model_copy()
            for vital in self.config.enabled_vitals()
            for metric in vital.metrics
            if metric in assessments
        }

        alert = Alert(severity=severity, message=alert_message(severity), metrics=metrics)
        self.logger.info(
            "alert_raised",
            source=alert.source,
            severity=severity.value,
            metrics=[m.value for m in metrics],
        )
        return alert

    def evaluate_vital(
        self,
        vital: VitalSign,
        previous: Severity,
        current: Severity,
        assessments: Mapping[MetricName, MetricAssessment],
    ) -> Alert | None:
        """Live path: alert on a change of a vital's status to a non-normal severity."""
        if not self.config.is_enabled(vital):
            return None
        if current is Severity.NORMAL or current == previous:
            return None
        if not self._meets_threshold(current):
            return None

        alert = Alert(
            severity=current,
            message=_describe_vital(vital, assessments),
            metrics={metric: a.model_copy() for metric, a in assessments.items()},
            source=vital.value,
        )
        self.logger.info(
            "alert_raised",
            source=alert.source,
            previous=previous.value,
            severity=current.value,
        )
        return alert


class AlertLog:
    """
    Alert history bounded to the most recent entries.

    Oldest alerts are evicted first; remaining entries keep their order.
    """

    def __init__(self, alerts: Iterable[Alert] = (), max_entries: int = 100) -> None:
        self._alerts: deque[Alert] = deque(alerts, maxlen=max_entries)

    @property
    def max_entries(self) -> int:
        return self._alerts.maxlen or 0

    def append(self, alert: Alert) -> None:
        self._alerts.append(alert)

    def entries(self) -> list[Alert]:
        return list(self._alerts)

    def unread_count(self) -> int:
        return sum(1 for alert in self._alerts if not alert.seen)

    def mark_seen(self, alert_id: str) -> bool:
        for index in range(len(self._alerts)):
            alert = self._alerts[index]
            if alert.id == alert_id:
                if not alert.seen:
                    self._alerts[index] = alert.acknowledged()
                return True
        return False

    def mark_all_seen(self) -> int:
        """Acknowledge every unread alert; returns how many changed."""
        changed = 0
        for index in range(len(self._alerts)):
            alert = self._alerts[index]
            if not alert.seen:
                self._alerts[index] = alert.acknowledged()
                changed += 1
        return changed

    def __len__(self) -> int:
        return len(self._alerts)
