"""
Bounded collection of human-readable repair descriptions.

Each strategy records its repairs into its own ``DiagnosticCollector`` which
caps the number of stored messages; the pipeline then merges strategy
collectors into a run-wide collector with a global cap. Repairs keep being
applied after a cap is reached, only their descriptions are dropped.
"""

from collections.abc import Iterable
from dataclasses import dataclass

DEFAULT_MAX_DIAGNOSTICS = 20


@dataclass
class DiagnosticStats:
    """Counts of recorded and dropped diagnostics."""

    recorded: int = 0
    dropped: int = 0

    @property
    def total(self) -> int:
        """Number of repairs reported, including dropped descriptions."""
        return self.recorded + self.dropped


class DiagnosticCollector:
    """Append-only diagnostic log with a fixed capacity."""

    def __init__(self, max_diagnostics: int = DEFAULT_MAX_DIAGNOSTICS):
        self.max_diagnostics = max_diagnostics
        self._messages: list[str] = []
        self.stats = DiagnosticStats()

    def add(self, message: str) -> None:
        """Record a diagnostic unless the cap has been reached."""
        if len(self._messages) < self.max_diagnostics:
            self._messages.append(message)
            self.stats.recorded += 1
        else:
            self.stats.dropped += 1

    def extend(self, messages: Iterable[str]) -> None:
        """Record several diagnostics in order."""
        for message in messages:
            self.add(message)

    def merge(self, other: "DiagnosticCollector") -> None:
        """Append another collector's messages, keeping its drop count."""
        self.extend(other.messages)
        self.stats.dropped += other.stats.dropped

    @property
    def remaining(self) -> int:
        """Number of diagnostics that can still be recorded."""
        return max(self.max_diagnostics - len(self._messages), 0)

    @property
    def is_full(self) -> bool:
        """Whether further diagnostics will be dropped."""
        return len(self._messages) >= self.max_diagnostics

    @property
    def messages(self) -> tuple[str, ...]:
        """Snapshot of the recorded diagnostics."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __bool__(self) -> bool:
        return bool(self._messages)

    def clear(self) -> None:
        """Clear all collected diagnostics."""
        self._messages.clear()
        self.stats = DiagnosticStats()
