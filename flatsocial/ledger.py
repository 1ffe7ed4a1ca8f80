"""Durable identifier counters.

The ledger file holds one ``name,value`` line per identifier space and is
rewritten in full after every allocation.

Example:
    >>> ledger = CounterLedger(Path("data/meta.csv"))
    >>> ledger.load()
    >>> ledger.allocate(IdSpace.USERS)
    1
    >>> ledger.peek(IdSpace.USERS)
    2
"""

from enum import StrEnum
from pathlib import Path

from loguru import logger

from flatsocial import metrics
from flatsocial.config import settings


class IdSpace(StrEnum):
    """Identifier spaces and their ledger line names."""

    USERS = "nextUserId"
    POSTS = "nextPostId"


class CounterLedger:
    """Next-available identifier for each ``IdSpace``.

    Counters start at 1. ``allocate`` is not synchronised; the store calls it
    while holding its write lock.

    Args:
        path: Ledger file location
    """

    FILE_NAME = "meta.csv"

    def __init__(self, path: Path) -> None:
        self.path = path
        self._next: dict[IdSpace, int] = {space: 1 for space in IdSpace}

    def load(self) -> None:
        """Read persisted counters.

        Unrecognised names and malformed lines are ignored; a missing file
        leaves every counter at its current value.

        Raises:
            OSError: If the file exists but cannot be read
        """
        if not self.path.exists():
            return

        known = {space.value: space for space in IdSpace}
        for line in self.path.read_text(encoding="utf-8").splitlines():
            parts = line.split(",")
            if len(parts) != 2 or parts[0] not in known:
                continue
            try:
                value = int(parts[1])
            except ValueError:
                logger.debug(f"Ignoring malformed ledger line: {line!r}")
                continue
            self._next[known[parts[0]]] = value

        logger.debug(
            "Ledger loaded: "
            + ", ".join(f"{space.value}={value}" for space, value in self._next.items())
        )

    def peek(self, space: IdSpace) -> int:
        """Next value ``allocate`` would return for ``space``."""
        return self._next[space]

    def allocate(self, space: IdSpace) -> int:
        """Return the next id for ``space`` and persist the advanced counter.

        The in-memory counter advances before the file is rewritten. A failed
        rewrite is logged and counted but not raised, so a crash afterwards
        can hand the same id out again after restart.
        """
        value = self._next[space]
        self._next[space] = value + 1
        if settings.metrics_enabled:
            metrics.ids_allocated_total.labels(space=space.value).inc()
        self._persist()
        return value

    def _persist(self) -> None:
        content = "".join(f"{space.value},{value}\n" for space, value in self._next.items())
        try:
            with open(self.path, "w", encoding="utf-8", newline="\n") as fh:
                fh.write(content)
        except OSError as exc:
            if settings.metrics_enabled:
                metrics.ledger_persist_failures_total.inc()
            logger.error(f"❌ Failed to persist ledger {self.path}: {exc}")

    def snapshot(self) -> dict[str, int]:
        """Counter values keyed by ledger line name."""
        return {space.value: value for space, value in self._next.items()}
