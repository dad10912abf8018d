"""
Tests for the health classifier.

Testing philosophy:
- Stub learned models for deterministic votes
- The trained SVM is only checked against its contract, not exact outputs
"""

from collections.abc import Sequence

import pytest

from vitalcheck.config import ClassifierConfig
from vitalcheck.domain.models import Severity
from vitalcheck.errors import ModelUnavailableError
from vitalcheck.services.classifier import (
    TRAINING_DATA,
    TRAINING_LABELS,
    HealthClassifier,
    NullClassifier,
    SVMClassifier,
)


class FixedVote:
    """Learned classifier stub that always returns the same label."""

    def __init__(self, label: int) -> None:
        self.label = label
        self.calls = 0

    def predict(self, features: Sequence[float]) -> int:
        self.calls += 1
        return self.label


class BrokenModel:
    def predict(self, features: Sequence[float]) -> int:
        raise RuntimeError("model exploded")


class TestHealthClassifier:
    def test_critical_metric_dominates_and_skips_model(self, make_reading) -> None:
        model = FixedVote(0)
        classifier = HealthClassifier(model=model)

        result = classifier.analyze(
            make_reading(
                heart_rate=70,
                blood_pressure_systolic=190,
                blood_pressure_diastolic=125,
                oxygen_level=98,
                temperature=36.5,
            )
        )

        assert result.overall_severity is Severity.CRITICAL
        assert result.classifier_vote is None
        assert model.calls == 0

    @pytest.mark.parametrize(
        ("vote", "expected"),
        [(0, Severity.WARNING), (1, Severity.WARNING), (2, Severity.CRITICAL)],
    )
    def test_overall_is_max_of_worst_and_vote(
        self, make_reading, vote: int, expected: Severity
    ) -> None:
        classifier = HealthClassifier(model=FixedVote(vote))

        result = classifier.analyze(make_reading(heart_rate=110))

        assert result.worst_individual is Severity.WARNING
        assert result.overall_severity is expected

    def test_model_can_escalate_a_normal_reading(self, make_reading) -> None:
        result = HealthClassifier(model=FixedVote(1)).analyze(make_reading())

        assert result.worst_individual is Severity.NORMAL
        assert result.overall_severity is Severity.WARNING
        assert result.classifier_vote is Severity.WARNING

    def test_model_failure_counts_as_normal_vote(self, make_reading) -> None:
        classifier = HealthClassifier(model=BrokenModel())

        warning = classifier.analyze(make_reading(oxygen_level=93))
        normal = classifier.analyze(make_reading())

        assert warning.overall_severity is Severity.WARNING
        assert normal.overall_severity is Severity.NORMAL
        assert normal.classifier_vote is Severity.NORMAL

    def test_untrained_svm_counts_as_normal_vote(self, make_reading) -> None:
        svm = SVMClassifier(samples=[[70, 110, 70, 98, 36.6]], labels=[0])
        classifier = HealthClassifier(model=svm)

        assert not svm.is_trained
        assert classifier.analyze(make_reading()).overall_severity is Severity.NORMAL

    def test_no_model_uses_rules_only(self, make_reading) -> None:
        result = HealthClassifier().analyze(make_reading(temperature=37.5))

        assert result.overall_severity is Severity.WARNING

    def test_result_carries_assessments_and_explanation(self, make_reading) -> None:
        reading = make_reading(heart_rate=120)

        result = HealthClassifier(model=NullClassifier()).analyze(reading)

        assert result.reading == reading
        assert len(result.assessments) == 5
        assert result.explanation.startswith("HEALTH WARNING:")
        assert "tachycardia" in result.explanation

    def test_from_config_respects_enabled_flag(self) -> None:
        disabled = HealthClassifier.from_config(ClassifierConfig(enabled=False))
        assert isinstance(disabled.model, NullClassifier)


class TestSVMClassifier:
    @pytest.fixture(scope="class")
    def svm(self) -> SVMClassifier:
        return SVMClassifier()

    def test_trains_on_fixed_corpus(self, svm: SVMClassifier) -> None:
        assert len(TRAINING_DATA) == len(TRAINING_LABELS) == 16
        assert svm.is_trained

    def test_predictions_are_valid_labels(self, svm: SVMClassifier) -> None:
        for sample in TRAINING_DATA:
            assert svm.predict(sample) in {0, 1, 2}

    def test_predict_returns_plain_int(self, svm: SVMClassifier) -> None:
        assert type(svm.predict([70, 110, 70, 98, 36.6])) is int

    def test_untrained_predict_raises(self) -> None:
        svm = SVMClassifier(samples=[[70, 110, 70, 98, 36.6]], labels=[0])

        with pytest.raises(ModelUnavailableError):
            svm.predict([70, 110, 70, 98, 36.6])
