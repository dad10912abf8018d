"""
End-to-end walkthrough of the monitoring pipeline.

This script exercises:
1. Configuration and classifier training
2. Registration, login and account lockout
3. Reading analysis, history and alerts
4. Live per-vital updates
5. Encrypted persistence across logout/login

Run with: uv run python demo.py
"""

import asyncio

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from vitalcheck.config import (
    AlertConfig,
    AppConfig,
    ClassifierConfig,
    LoggingConfig,
    SecurityConfig,
    StorageConfig,
)
from vitalcheck.domain.models import MetricName, Reading, Severity
from vitalcheck.observability import configure_logging
from vitalcheck.services.crypto import HealthDataCipher
from vitalcheck.services.monitoring import HealthMonitoringService
from vitalcheck.services.storage import InMemoryStorage

console = Console()

EMAIL = "ada@example.com"
PASSWORD = "correct horse battery staple"

SCENARIOS = [
    (
        "Resting",
        Reading(
            heart_rate=72,
            blood_pressure_systolic=118,
            blood_pressure_diastolic=76,
            oxygen_level=98,
            temperature=36.7,
        ),
    ),
    (
        "After a run",
        Reading(
            heart_rate=112,
            blood_pressure_systolic=138,
            blood_pressure_diastolic=86,
            oxygen_level=96,
            temperature=37.4,
        ),
    ),
    (
        "Feverish",
        Reading(
            heart_rate=124,
            blood_pressure_systolic=150,
            blood_pressure_diastolic=95,
            oxygen_level=93,
            temperature=38.9,
        ),
    ),
]

_SEVERITY_STYLES = {
    Severity.NORMAL: "green",
    Severity.WARNING: "yellow",
    Severity.CRITICAL: "red",
}


def build_config() -> AppConfig:
    """Self-contained config: fresh key, in-memory storage."""
    return AppConfig(
        environment="development",
        debug=True,
        security=SecurityConfig(encryption_key=HealthDataCipher.generate_key()),
        classifier=ClassifierConfig(),
        alerts=AlertConfig(),
        storage=StorageConfig(backend="memory"),
        logging=LoggingConfig(level="WARNING", format="console"),
    )


async def demo_authentication(service: HealthMonitoringService) -> bool:
    console.print(Panel("Authentication", style="blue"))

    result = await service.register("Ada", EMAIL, PASSWORD)
    console.print(f"Register: {result.message}", style="green" if result.success else "red")

    for attempt in range(service.config.security.lockout_threshold):
        result = await service.login("mallory@example.com", f"guess-{attempt}")
    console.print(f"Brute force on unknown account: {result.message}", style="yellow")
    result = await service.login("mallory@example.com", "anything")
    console.print(f"Next attempt: {result.message}", style="yellow")

    result = await service.login(EMAIL, PASSWORD)
    console.print(f"Login: {result.message}", style="green" if result.success else "red")
    return result.success


async def demo_readings(service: HealthMonitoringService) -> None:
    console.print(Panel("Reading Analysis", style="blue"))

    table = Table(title="Analyzed Readings")
    table.add_column("Scenario", style="cyan")
    table.add_column("Worst Metric", style="white")
    table.add_column("Model Vote", style="white")
    table.add_column("Overall", style="white")
    table.add_column("Alert", style="white")
    table.add_column("Persisted", style="white")

    for name, reading in SCENARIOS:
        outcome = await service.record_reading(reading)
        analysis = outcome.analysis
        assert analysis is not None
        overall = analysis.overall_severity
        table.add_row(
            name,
            analysis.worst_individual.value,
            analysis.classifier_vote.value if analysis.classifier_vote else "-",
            f"[{_SEVERITY_STYLES[overall]}]{overall.value.upper()}[/]",
            "yes" if outcome.alert else "no",
            "yes" if outcome.persisted.is_ok() else "no",
        )

    console.print(table)

    console.print(Panel(analysis.explanation, title="Latest explanation"))


async def demo_live_updates(service: HealthMonitoringService) -> None:
    console.print(Panel("Live Vital Updates", style="blue"))
    session = service.require_session()

    updates = [
        {MetricName.OXYGEN_LEVEL: 97.0},
        {MetricName.OXYGEN_LEVEL: 92.0},
        {MetricName.OXYGEN_LEVEL: 92.5},
        {MetricName.OXYGEN_LEVEL: 88.0},
    ]
    for values in updates:
        outcome = await session.update_vitals(values)
        for vital, status in outcome.statuses.items():
            raised = ", ".join(alert.message for alert in outcome.alerts) or "no alert"
            console.print(
                f"{vital.value}: {status.value} ({raised})", style=_SEVERITY_STYLES[status]
            )


async def demo_persistence(service: HealthMonitoringService) -> None:
    console.print(Panel("Encrypted Persistence", style="blue"))
    session = service.require_session()
    before = len(session.get_health_history())
    unread = session.unread_alerts_count()

    await service.logout()
    console.print("Logged out; session state dropped", style="yellow")

    await service.login(EMAIL, PASSWORD)
    session = service.require_session()

    summary = Table(title="Restored State")
    summary.add_column("Item", style="cyan")
    summary.add_column("Before", style="white")
    summary.add_column("After", style="white")
    summary.add_row("History entries", str(before), str(len(session.get_health_history())))
    summary.add_row("Unread alerts", str(unread), str(session.unread_alerts_count()))
    console.print(summary)

    acknowledged = await session.mark_all_alerts_seen()
    console.print(f"Acknowledged {acknowledged} alerts", style="green")


async def run_demo() -> None:
    config = build_config()
    configure_logging(config.logging)

    console.print(Panel("VitalCheck - Monitoring Walkthrough", style="bold blue"))
    service = HealthMonitoringService(config=config, storage=InMemoryStorage())

    if not await demo_authentication(service):
        console.print("Login failed, stopping", style="red")
        return

    await demo_readings(service)
    await demo_live_updates(service)
    await demo_persistence(service)
    await service.logout()


if __name__ == "__main__":
    try:
        asyncio.run(run_demo())
    except KeyboardInterrupt:
        console.print("\nStopped by user", style="yellow")
