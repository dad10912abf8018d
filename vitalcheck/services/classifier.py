"""
Health status classification combining per-metric rules with a learned model.

Key decisions:
- Rule-based evaluation is authoritative: an individually critical metric makes
  the whole reading critical and the learned model is not consulted.
- The learned model can only escalate: overall = max(worst metric, model vote).
- Model failures of any kind count as a normal vote and never reach the caller.
"""

from collections.abc import Mapping, Sequence
from typing import Protocol

import numpy as np
import structlog
from sklearn.pipeline import Pipeline, make_pipeline
from sklearn.preprocessing import StandardScaler
from sklearn.svm import SVC

from vitalcheck.config import ClassifierConfig
from vitalcheck.domain.models import (
    AnalysisResult,
    MetricName,
    Reading,
    Severity,
    worst_severity,
)
from vitalcheck.errors import ModelUnavailableError
from vitalcheck.services.explanation import build_explanation
from vitalcheck.services.metric_evaluator import DEFAULT_BANDS, MetricBands, assess_reading

logger = structlog.get_logger(__name__)

# Labeled corpus: [HR, systolic, diastolic, O2, temperature]
TRAINING_DATA: list[list[float]] = [
    # Normal
    [70, 110, 70, 98, 36.6],
    [75, 115, 75, 99, 36.8],
    [65, 105, 65, 97, 36.5],
    [80, 118, 76, 98, 36.9],
    [90, 125, 82, 96, 37.1],
    # Warning
    [105, 135, 85, 94, 37.5],
    [55, 85, 55, 94, 35.9],
    [95, 142, 88, 93, 37.6],
    [110, 145, 92, 94, 37.8],
    [85, 150, 95, 95, 37.7],
    # Critical
    [120, 160, 100, 91, 38.2],
    [45, 80, 50, 89, 35.5],
    [130, 170, 105, 88, 38.5],
    [50, 75, 45, 87, 35.0],
    [115, 180, 110, 86, 38.8],
    [80, 190, 100, 90, 38.0],
]

# 0 = normal, 1 = warning, 2 = critical
TRAINING_LABELS: list[int] = [0] * 5 + [1] * 5 + [2] * 6


class LearnedClassifier(Protocol):
    """Pluggable statistical classifier."""

    def predict(self, features: Sequence[float]) -> int:
        """Return 0 (normal), 1 (warning) or 2 (critical) for a five-feature vector."""
        ...


class NullClassifier:
    """Classifier used when the learned model is disabled; always votes normal."""

    def predict(self, features: Sequence[float]) -> int:
        return 0


class SVMClassifier:
    """
    Support vector machine trained once on the fixed labeled corpus.

    Features are standardized before the RBF kernel so distances between
    heart rate, pressure, oxygen and temperature are comparable.
    """

    def __init__(
        self,
        config: ClassifierConfig | None = None,
        samples: Sequence[Sequence[float]] = TRAINING_DATA,
        labels: Sequence[int] = TRAINING_LABELS,
    ) -> None:
        self.config = config or ClassifierConfig()
        self.logger = logger.bind(component="svm_classifier")
        self._pipeline: Pipeline | None = None
        self.train(samples, labels)

    @property
    def is_trained(self) -> bool:
        return self._pipeline is not None

    def train(self, samples: Sequence[Sequence[float]], labels: Sequence[int]) -> bool:
        """Fit the model. On failure the classifier stays untrained."""
        pipeline = make_pipeline(
            StandardScaler(),
            SVC(kernel=self.config.kernel, gamma=self.config.gamma, C=self.config.c),
        )
        try:
            pipeline.fit(np.asarray(samples, dtype=float), np.asarray(labels, dtype=int))
        except ValueError as e:
            self.logger.error("svm_training_failed", error=str(e), samples=len(samples))
            self._pipeline = None
            return False

        self._pipeline = pipeline
        self.logger.info(
            "svm_trained",
            samples=len(samples),
            kernel=self.config.kernel,
            gamma=self.config.gamma,
            c=self.config.c,
        )
        return True

    def predict(self, features: Sequence[float]) -> int:
        if self._pipeline is None:
            raise ModelUnavailableError("SVM classifier has not been trained")
        prediction = self._pipeline.predict(np.asarray([features], dtype=float))
        return int(prediction[0])


class HealthClassifier:
    """
    Produces one AnalysisResult per reading.

    Design principles:
    - Safe: the learned model can escalate but never downgrade
    - Observable: every analysis and model failure is logged
    """

    def __init__(
        self,
        model: LearnedClassifier | None = None,
        bands: Mapping[MetricName, MetricBands] = DEFAULT_BANDS,
    ) -> None:
        self.model = model
        self.bands = bands
        self.logger = logger.bind(component="health_classifier")

    @classmethod
    def from_config(cls, config: ClassifierConfig) -> "HealthClassifier":
        model: LearnedClassifier = SVMClassifier(config) if config.enabled else NullClassifier()
        return cls(model=model)

    def analyze(self, reading: Reading) -> AnalysisResult:
        assessments = assess_reading(reading, self.bands)
        worst = worst_severity(a.severity for a in assessments.values())

        vote: Severity | None = None
        if worst is Severity.CRITICAL:
            overall = Severity.CRITICAL
        else:
            vote = self._model_vote(reading)
            overall = max(worst, vote)

        self.logger.info(
            "reading_analyzed",
            overall=overall.value,
            worst_metric=worst.value,
            classifier_vote=vote.value if vote else None,
        )

        return AnalysisResult(
            reading=reading,
            overall_severity=overall,
            assessments=assessments,
            explanation=build_explanation(reading, overall),
            classifier_vote=vote,
        )

    def _model_vote(self, reading: Reading) -> Severity:
        """Best-effort learned vote; any failure is a normal vote."""
        if self.model is None:
            return Severity.NORMAL
        try:
            label = self.model.predict(reading.features())
        except Exception as e:
            self.logger.warning("classifier_vote_failed", error=str(e))
            return Severity.NORMAL
        return Severity.from_label(label)
