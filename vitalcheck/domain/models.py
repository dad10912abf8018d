"""
Domain models for vital-sign monitoring.

These models represent the core health-tracking concepts and are framework-agnostic.
They use Pydantic for validation and serialization; everything that is persisted
round-trips through `model_dump_json` / `model_validate_json`.
"""

from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

_SEVERITY_RANK = {"normal": 0, "warning": 1, "critical": 2}


class Severity(str, Enum):
    """
    Health status levels.

    Ordering is total and fixed: normal < warning < critical. Comparison
    operators are overridden so the str base never compares alphabetically.
    """

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self.value]

    @classmethod
    def from_label(cls, label: int) -> "Severity":
        """Map a classifier label (0/1/2) to a severity; unknown labels are normal."""
        for severity in cls:
            if severity.rank == label:
                return severity
        return cls.NORMAL

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


def worst_severity(severities: Iterable[Severity]) -> Severity:
    """Most severe of the given severities, normal when there are none."""
    return max(severities, default=Severity.NORMAL)


class MetricName(str, Enum):
    """The five tracked scalar vital-sign metrics."""

    HEART_RATE = "heart_rate"
    BLOOD_PRESSURE_SYSTOLIC = "blood_pressure_systolic"
    BLOOD_PRESSURE_DIASTOLIC = "blood_pressure_diastolic"
    OXYGEN_LEVEL = "oxygen_level"
    TEMPERATURE = "temperature"


class VitalSign(str, Enum):
    """User-facing vital signs; blood pressure groups systolic and diastolic."""

    HEART_RATE = "heart_rate"
    BLOOD_PRESSURE = "blood_pressure"
    OXYGEN_LEVEL = "oxygen_level"
    TEMPERATURE = "temperature"

    @property
    def metrics(self) -> tuple[MetricName, ...]:
        return VITAL_SIGN_METRICS[self]


VITAL_SIGN_METRICS: dict[VitalSign, tuple[MetricName, ...]] = {
    VitalSign.HEART_RATE: (MetricName.HEART_RATE,),
    VitalSign.BLOOD_PRESSURE: (
        MetricName.BLOOD_PRESSURE_SYSTOLIC,
        MetricName.BLOOD_PRESSURE_DIASTOLIC,
    ),
    VitalSign.OXYGEN_LEVEL: (MetricName.OXYGEN_LEVEL,),
    VitalSign.TEMPERATURE: (MetricName.TEMPERATURE,),
}


class Reading(BaseModel):
    """One snapshot of the five tracked vital signs."""

    model_config = ConfigDict(frozen=True)

    heart_rate: int = Field(description="Beats per minute")
    blood_pressure_systolic: float = Field(allow_inf_nan=False, description="mmHg")
    blood_pressure_diastolic: float = Field(allow_inf_nan=False, description="mmHg")
    oxygen_level: float = Field(allow_inf_nan=False, description="Oxygen saturation, percent")
    temperature: float = Field(allow_inf_nan=False, description="Body temperature, Celsius")
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def value_of(self, metric: MetricName) -> float:
        return float(getattr(self, metric.value))

    def features(self) -> list[float]:
        """Feature vector in classifier order: HR, systolic, diastolic, O2, temperature."""
        return [self.value_of(metric) for metric in MetricName]


class MetricAssessment(BaseModel):
    """Severity of a single observed metric value."""

    model_config = ConfigDict(frozen=True)

    metric: MetricName
    value: float
    severity: Severity


class AnalysisResult(BaseModel):
    """Overall judgment for one reading."""

    model_config = ConfigDict(frozen=True)

    reading: Reading
    overall_severity: Severity
    assessments: dict[MetricName, MetricAssessment]
    explanation: str
    classifier_vote: Severity | None = Field(
        default=None, description="Learned classifier vote, None when it was not consulted"
    )
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def worst_individual(self) -> Severity:
        return worst_severity(a.severity for a in self.assessments.values())


AlertSource = Literal["reading", "heart_rate", "blood_pressure", "oxygen_level", "temperature"]


class Alert(BaseModel):
    """
    Durable notice raised by the alert policy.

    Frozen: acknowledging an alert replaces it with a copy whose `seen` is True.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    severity: Severity
    message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    metrics: dict[MetricName, MetricAssessment] = Field(default_factory=dict)
    source: AlertSource = "reading"
    seen: bool = False

    def acknowledged(self) -> "Alert":
        return self.model_copy(update={"seen": True})


class HistoryEntry(BaseModel):
    """Ledger record of a reading and its derived overall severity."""

    model_config = ConfigDict(frozen=True)

    reading: Reading
    severity: Severity
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


MonitoringSchedule = Literal["hourly", "daily", "weekly", "monthly"]


class MonitoringConfig(BaseModel):
    """Per-user monitoring settings, persisted with the user's health state."""

    model_config = ConfigDict(frozen=True)

    is_active: bool = True
    schedule: MonitoringSchedule = "daily"
    alert_threshold: Severity = Severity.WARNING

    # Per-vital enable flags
    heart_rate: bool = True
    blood_pressure: bool = True
    temperature: bool = True
    oxygen_level: bool = True
    weight: bool = False

    def is_enabled(self, vital: VitalSign) -> bool:
        return bool(getattr(self, vital.value))

    def enabled_vitals(self) -> list[VitalSign]:
        return [vital for vital in VitalSign if self.is_enabled(vital)]


UserRole = Literal["patient", "doctor", "admin"]


class UserInfo(BaseModel):
    """Registered user identity."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str
    role: UserRole = "patient"


class SessionInfo(BaseModel):
    """Authenticated session issued at login."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    token: str
    expires_at: datetime
    device_id: str


class SecurityEvent(BaseModel):
    """Audit record for security-relevant actions."""

    model_config = ConfigDict(frozen=True)

    action: str
    severity: Literal["info", "warning", "critical"]
    user_id: str | None = None
    details: dict[str, str] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
