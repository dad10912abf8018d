"""Shared fixtures for the unit test suite."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from vitalcheck.config import SecurityConfig
from vitalcheck.domain.models import Reading
from vitalcheck.services.crypto import HealthDataCipher


class FakeClock:
    """Manually advanced clock for session and lockout expiry."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def security_config() -> SecurityConfig:
    return SecurityConfig(encryption_key=HealthDataCipher.generate_key())


@pytest.fixture
def make_reading() -> Callable[..., Reading]:
    """Factory for readings that are normal unless overridden."""

    def _make(**overrides: float) -> Reading:
        values: dict[str, float] = {
            "heart_rate": 72,
            "blood_pressure_systolic": 118,
            "blood_pressure_diastolic": 76,
            "oxygen_level": 98,
            "temperature": 36.7,
        }
        values.update(overrides)
        return Reading(**values)

    return _make
