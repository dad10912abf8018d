"""
Core services for vital-sign monitoring.

This package contains the main service implementations: metric evaluation,
classification, alerting, history, encrypted persistence and authentication.
"""

from .alert_policy import AlertLog, AlertPolicy
from .classifier import HealthClassifier, LearnedClassifier, NullClassifier, SVMClassifier
from .crypto import HealthDataCipher
from .history import HistoryLedger
from .metric_evaluator import DEFAULT_BANDS, assess_reading, assess_vital, evaluate_metric
from .monitoring import HealthMonitoringService, MonitoringSession, SaveOutcome, storage_key
from .result import Result
from .security import Authenticator, AuthResult, LocalAuthService
from .storage import FileStorage, InMemoryStorage, StorageBackend

__all__ = [
    "AlertLog",
    "AlertPolicy",
    "AuthResult",
    "Authenticator",
    "DEFAULT_BANDS",
    "FileStorage",
    "HealthClassifier",
    "HealthDataCipher",
    "HealthMonitoringService",
    "HistoryLedger",
    "InMemoryStorage",
    "LearnedClassifier",
    "LocalAuthService",
    "MonitoringSession",
    "NullClassifier",
    "Result",
    "SVMClassifier",
    "SaveOutcome",
    "StorageBackend",
    "assess_reading",
    "assess_vital",
    "evaluate_metric",
    "storage_key",
]
