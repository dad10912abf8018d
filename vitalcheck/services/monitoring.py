"""
Per-user monitoring session and the service that owns its lifecycle.

This demonstrates the complete pipeline for one authenticated user:
1. Classify a reading (rules + learned vote)
2. Append it to the history ledger
3. Raise alerts according to the alert policy
4. Persist encrypted state under a per-user key

A session is opened at login and closed at logout. Every read and write checks
the authentication collaborator; writes fail closed with AuthorizationError,
reads fail closed with empty results.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

import structlog
from pydantic import BaseModel, Field, ValidationError

from vitalcheck.config import AppConfig, get_config
from vitalcheck.domain.models import (
    Alert,
    AnalysisResult,
    HistoryEntry,
    MetricName,
    MonitoringConfig,
    Reading,
    Severity,
    VitalSign,
    worst_severity,
)
from vitalcheck.errors import AuthorizationError, DecryptionError, StorageError
from vitalcheck.services.alert_policy import AlertLog, AlertPolicy
from vitalcheck.services.classifier import HealthClassifier
from vitalcheck.services.crypto import HealthDataCipher
from vitalcheck.services.history import HistoryLedger
from vitalcheck.services.metric_evaluator import assess_reading, assess_vital
from vitalcheck.services.result import Result
from vitalcheck.services.security import AuthResult, Authenticator, LocalAuthService
from vitalcheck.services.storage import StorageBackend, create_storage

logger = structlog.get_logger(__name__)


def storage_key(user_id: str) -> str:
    return f"health_monitoring_data_{user_id}"


class PersistedState(BaseModel):
    """Everything a session persists, serialized as JSON before encryption."""

    config: MonitoringConfig = Field(default_factory=MonitoringConfig)
    history: list[HistoryEntry] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)


@dataclass(frozen=True)
class SaveOutcome:
    """Result of saving one reading. Storage failures land in `persisted`."""

    entry: HistoryEntry
    alert: Alert | None
    persisted: Result[int, Exception]
    analysis: AnalysisResult | None = None


@dataclass(frozen=True)
class VitalUpdateOutcome:
    """Result of a live per-vital update."""

    statuses: dict[VitalSign, Severity]
    alerts: list[Alert] = field(default_factory=list)
    persisted: Result[int, Exception] | None = None


class MonitoringSession:
    """
    Health state of one authenticated user.

    Owns the history ledger, alert log, per-vital last status and monitoring
    config. Not shared between users; `close()` drops everything.
    """

    def __init__(
        self,
        user_id: str,
        auth: Authenticator,
        storage: StorageBackend,
        cipher: HealthDataCipher,
        classifier: HealthClassifier | None = None,
        alert_retention: int = 100,
        default_config: MonitoringConfig | None = None,
    ) -> None:
        self._user_id: str | None = user_id
        self.auth = auth
        self.storage = storage
        self.cipher = cipher
        self.classifier = classifier or HealthClassifier()
        self.alert_retention = alert_retention
        self.default_config = default_config or MonitoringConfig()
        self.logger = logger.bind(component="monitoring_session", user_id=user_id)

        self._reset_state()

    @classmethod
    async def open(
        cls,
        user_id: str,
        auth: Authenticator,
        storage: StorageBackend,
        cipher: HealthDataCipher,
        **kwargs: Any,
    ) -> "MonitoringSession":
        """Create a session and load the user's persisted state."""
        session = cls(user_id, auth, storage, cipher, **kwargs)
        await session.load()
        return session

    def _reset_state(self) -> None:
        self._ledger = HistoryLedger()
        self._alerts = AlertLog(max_entries=self.alert_retention)
        self._policy = AlertPolicy(self.default_config)
        self._vital_status: dict[VitalSign, Severity] = {}
        self._last_values: dict[MetricName, float] = {}

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def is_open(self) -> bool:
        return self._user_id is not None

    # Access control

    def _authorized_user(self) -> str | None:
        """The session's user id while its owner is logged in, else None."""
        user_id = self._user_id
        if user_id is None or not self.auth.is_authenticated():
            return None
        if self.auth.current_user_id() != user_id:
            return None
        return user_id

    def _require_authorized(self, action: str) -> str:
        user_id = self._authorized_user()
        if user_id is None:
            self.logger.warning("unauthorized_health_data_write", action=action)
            raise AuthorizationError(f"Authentication required to {action}")
        return user_id

    def _allow_read(self, action: str) -> bool:
        if self._authorized_user() is not None:
            return True
        self.logger.warning("unauthorized_health_data_read", action=action)
        return False

    # Persistence

    async def load(self) -> None:
        """
        Restore persisted state for the session's user.

        Undecryptable or unparseable data raises DecryptionError; it is never
        treated as empty.
        """
        user_id = self._require_authorized("load health data")
        raw = await self.storage.get(storage_key(user_id))
        if raw is None:
            self.logger.info("no_persisted_state")
            return

        plaintext = self.cipher.decrypt(user_id, raw)
        try:
            state = PersistedState.model_validate_json(plaintext)
        except ValidationError as e:
            self.logger.critical("persisted_state_corrupt", error=str(e))
            raise DecryptionError("Stored health data is corrupted") from e

        self._ledger = HistoryLedger(state.history)
        self._alerts = AlertLog(state.alerts, max_entries=self.alert_retention)
        self._policy = AlertPolicy(state.config)

        # Seed live statuses from the most recent reading
        latest = self._ledger.latest()
        if latest is not None:
            self._track_reading_statuses(latest.reading)

        self.logger.info(
            "persisted_state_loaded",
            history_entries=len(self._ledger),
            alerts=len(self._alerts),
        )

    async def persist(self) -> Result[int, Exception]:
        """
        Encrypt and write the session state.

        Storage failures are returned, not raised; the in-memory state stays
        authoritative. Encryption failures propagate.
        """
        user_id = self._require_authorized("save health data")
        state = PersistedState(
            config=self._policy.config,
            history=list(self._ledger.entries()),
            alerts=self._alerts.entries(),
        )
        blob = self.cipher.encrypt(user_id, state.model_dump_json().encode())
        try:
            await self.storage.set(storage_key(user_id), blob)
        except StorageError as e:
            self.logger.error("persist_failed", error=str(e))
            return Result.err(e)

        self.logger.debug("state_persisted", bytes=len(blob))
        return Result.ok(len(blob))

    # Analysis and recording

    def analyze(self, reading: Reading) -> AnalysisResult:
        return self.classifier.analyze(reading)

    async def record_reading(self, reading: Reading) -> SaveOutcome:
        """Analyze a reading, then save it with its overall severity."""
        self._require_authorized("save health data")
        analysis = self.analyze(reading)
        return await self.save_health_data(reading, analysis.overall_severity, analysis)

    async def save_health_data(
        self,
        reading: Reading,
        severity: Severity,
        analysis: AnalysisResult | None = None,
    ) -> SaveOutcome:
        """Append a reading to the ledger and raise at most one alert for it."""
        self._require_authorized("save health data")

        entry = self._ledger.append(reading, severity)

        assessments = analysis.assessments if analysis else assess_reading(reading)
        alert = self._policy.evaluate_reading(severity, assessments)
        if alert is not None:
            self._alerts.append(alert)

        self._track_reading_statuses(reading)

        persisted = await self.persist()
        self.logger.info(
            "health_data_saved",
            severity=severity.value,
            alert_raised=alert is not None,
            bytes_written=persisted.unwrap_or(0),
        )
        return SaveOutcome(entry=entry, alert=alert, persisted=persisted, analysis=analysis)

    async def update_vitals(self, values: Mapping[MetricName, float]) -> VitalUpdateOutcome:
        """
        Live per-vital update.

        Each vital touched by `values` is re-evaluated and compared with its
        last known status; only changes to a non-normal status raise alerts.
        Metrics not supplied keep their last known value, so a systolic-only
        update is still judged together with the last diastolic.
        """
        self._require_authorized("update vital signs")

        self._last_values.update(values)

        alerts: list[Alert] = []
        statuses: dict[VitalSign, Severity] = {}
        for vital in VitalSign:
            if not any(metric in values for metric in vital.metrics):
                continue
            assessments = assess_vital(vital, self._last_values)

            current = worst_severity(a.severity for a in assessments.values())
            previous = self._vital_status.get(vital, Severity.NORMAL)
            alert = self._policy.evaluate_vital(vital, previous, current, assessments)
            if alert is not None:
                self._alerts.append(alert)
                alerts.append(alert)

            self._vital_status[vital] = current
            statuses[vital] = current

        persisted = await self.persist() if alerts else None
        return VitalUpdateOutcome(statuses=statuses, alerts=alerts, persisted=persisted)

    def _track_reading_statuses(self, reading: Reading) -> None:
        self._last_values = {metric: reading.value_of(metric) for metric in MetricName}
        for vital in VitalSign:
            assessments = assess_vital(vital, self._last_values)
            self._vital_status[vital] = worst_severity(a.severity for a in assessments.values())

    def vital_status(self, vital: VitalSign) -> Severity:
        return self._vital_status.get(vital, Severity.NORMAL)

    # Reads

    def get_health_history(self) -> list[HistoryEntry]:
        if not self._allow_read("health history"):
            return []
        return list(self._ledger.entries())

    def get_alerts(self) -> list[Alert]:
        if not self._allow_read("alerts"):
            return []
        return self._alerts.entries()

    def unread_alerts_count(self) -> int:
        if not self._allow_read("unread alerts count"):
            return 0
        return self._alerts.unread_count()

    # Alert acknowledgement

    async def mark_alert_seen(self, alert_id: str) -> bool:
        self._require_authorized("acknowledge alerts")
        if not self._alerts.mark_seen(alert_id):
            return False
        await self.persist()
        return True

    async def mark_all_alerts_seen(self) -> int:
        self._require_authorized("acknowledge alerts")
        changed = self._alerts.mark_all_seen()
        if changed:
            await self.persist()
        return changed

    # Monitoring configuration

    def get_monitoring_config(self) -> MonitoringConfig:
        return self._policy.config

    async def update_monitoring_config(self, **changes: Any) -> MonitoringConfig:
        """Apply a partial update; unknown or invalid fields raise ValidationError."""
        self._require_authorized("update monitoring settings")
        unknown = set(changes) - set(MonitoringConfig.model_fields)
        if unknown:
            raise ValueError(f"Unknown monitoring settings: {', '.join(sorted(unknown))}")

        config = MonitoringConfig.model_validate({**self._policy.config.model_dump(), **changes})
        self._policy = AlertPolicy(config)
        self.logger.info("monitoring_config_updated", changes=sorted(changes))
        await self.persist()
        return config

    # Lifecycle

    def close(self) -> None:
        """Forget the user and every piece of their in-memory health state."""
        self.logger.info("monitoring_session_closed")
        self._user_id = None
        self._reset_state()


class HealthMonitoringService:
    """
    Application-level service that wires configuration, storage, encryption,
    authentication and classification, and owns the current user's session.

    The classifier is trained once and shared across sessions; sessions are
    created at login and torn down at logout.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        storage: StorageBackend | None = None,
        classifier: HealthClassifier | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.config = config or get_config()
        self.logger = logger.bind(component="health_monitoring_service")

        self.storage = storage or create_storage(self.config.storage)
        self.cipher = HealthDataCipher(self.config.security.encryption_key)
        if clock is None:
            self.auth = LocalAuthService(self.storage, self.config.security)
        else:
            self.auth = LocalAuthService(self.storage, self.config.security, clock=clock)
        self.classifier = classifier or HealthClassifier.from_config(self.config.classifier)

        self.session: MonitoringSession | None = None

    def _default_monitoring_config(self) -> MonitoringConfig:
        return MonitoringConfig(
            is_active=self.config.alerts.default_active,
            alert_threshold=self.config.alerts.default_threshold,
        )

    async def _open_session(self) -> MonitoringSession:
        user_id = self.auth.current_user_id()
        if user_id is None:
            raise AuthorizationError("Authentication required to open a monitoring session")

        self.session = await MonitoringSession.open(
            user_id,
            self.auth,
            self.storage,
            self.cipher,
            classifier=self.classifier,
            alert_retention=self.config.alerts.retention,
            default_config=self._default_monitoring_config(),
        )
        self.logger.info("monitoring_session_opened", user_id=user_id)
        return self.session

    async def register(self, name: str, email: str, password: str) -> AuthResult:
        return await self.auth.register(name, email, password)

    async def login(self, email: str, password: str) -> AuthResult:
        result = await self.auth.login(email, password)
        if result.success:
            if self.session is not None:
                self.session.close()
            await self._open_session()
        return result

    async def resume(self) -> bool:
        """Reopen the session of a persisted, unexpired login."""
        if not await self.auth.restore_session():
            return False
        await self._open_session()
        return True

    async def logout(self) -> None:
        if self.session is not None:
            self.session.close()
            self.session = None
        await self.auth.logout()

    def require_session(self) -> MonitoringSession:
        if self.session is None or not self.session.is_open:
            raise AuthorizationError("No active monitoring session")
        return self.session

    async def record_reading(self, reading: Reading) -> SaveOutcome:
        return await self.require_session().record_reading(reading)
