"""Append-only ledger of readings and their derived severities."""

from collections.abc import Iterable, Iterator
from datetime import UTC, datetime

from vitalcheck.domain.models import HistoryEntry, Reading, Severity


class HistoryLedger:
    """
    Readings in insertion order. Entries are frozen and there is no way to
    update or remove one; growth is unbounded.
    """

    def __init__(self, entries: Iterable[HistoryEntry] = ()) -> None:
        self._entries: list[HistoryEntry] = list(entries)

    def append(
        self, reading: Reading, severity: Severity, timestamp: datetime | None = None
    ) -> HistoryEntry:
        entry = HistoryEntry(
            reading=reading,
            severity=severity,
            timestamp=timestamp or datetime.now(UTC),
        )
        self._entries.append(entry)
        return entry

    def entries(self) -> tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def latest(self) -> HistoryEntry | None:
        return self._entries[-1] if self._entries else None

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(tuple(self._entries))
