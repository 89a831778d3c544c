"""
Timeout-protected regex execution for repair rules.

Every rule pattern runs through a ``RegexEngine``. Model output can be large
and arbitrarily malformed, and a single pathological pattern must not stall
the repair pipeline, so each operation carries a time limit:

- ``RegexModuleBackend`` passes ``timeout=`` to the ``regex`` module
- ``StdlibBackend`` runs ``re`` in a daemon worker thread and stops waiting

Compiled patterns are kept in an LRU cache keyed by backend, and the engine
tracks per-pattern worst-case timings and timeouts.
"""

import logging
import queue
import re
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, NamedTuple, Optional, Union

import regex

from ..security.exceptions import RegexBackendError, RegexTimeoutError

logger = logging.getLogger(__name__)

Replacement = Union[str, Callable[[Any], str]]

DEFAULT_BACKEND = "regex"


class TimeoutBehavior(Enum):
    """What the engine does after an operation runs out of time."""

    RAISE_EXCEPTION = "raise"
    RETURN_ORIGINAL = "original"
    LOG_AND_CONTINUE = "log"


@dataclass
class RegexConfig:
    """Engine settings. Timeouts are in seconds."""

    search_timeout: float = 0.5
    sub_timeout: float = 2.0
    timeout_behavior: TimeoutBehavior = TimeoutBehavior.LOG_AND_CONTINUE

    cache_size: int = 256
    cache_enabled: bool = True

    enable_metrics: bool = True
    log_slow_patterns: bool = False
    slow_threshold_ms: float = 100.0

    preferred_backend: Optional[str] = None


# ============================================================================
# Statistics
# ============================================================================


@dataclass
class RegexMetrics:
    """Counters shared by all threads using one engine."""

    total_operations: int = 0
    timeouts: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    timeout_patterns: dict[str, int] = field(default_factory=dict)
    slowest_ms: dict[str, float] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def observe(self, pattern: str, elapsed_ms: float) -> None:
        with self._lock:
            self.total_operations += 1
            self.slowest_ms[pattern] = max(self.slowest_ms.get(pattern, 0.0), elapsed_ms)

    def observe_timeout(self, pattern: str) -> None:
        with self._lock:
            self.timeouts += 1
            self.timeout_patterns[pattern] = self.timeout_patterns.get(pattern, 0) + 1

    def observe_lookup(self, hit: bool) -> None:
        with self._lock:
            if hit:
                self.cache_hits += 1
            else:
                self.cache_misses += 1

    def get_slowest_patterns(self, n: int = 10) -> list[tuple[str, float]]:
        """The ``n`` patterns with the worst single run, slowest first."""
        with self._lock:
            ranked = sorted(self.slowest_ms.items(), key=lambda item: -item[1])
        return ranked[:n]

    def get_cache_hit_rate(self) -> float:
        """Percentage of compile lookups served from the cache."""
        with self._lock:
            lookups = self.cache_hits + self.cache_misses
            if not lookups:
                return 0.0
            return 100.0 * self.cache_hits / lookups


# ============================================================================
# Compiled pattern cache
# ============================================================================


class PatternKey(NamedTuple):
    pattern: str
    flags: int
    backend: str


class PatternCache:
    """LRU cache of compiled patterns. ``maxsize <= 0`` means unbounded."""

    def __init__(self, maxsize: int = 256):
        self.maxsize = maxsize
        self._entries: "OrderedDict[PatternKey, Any]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, pattern: str, flags: int, backend_name: str) -> Optional[Any]:
        key = PatternKey(pattern, flags, backend_name)
        with self._lock:
            compiled = self._entries.get(key)
            if compiled is not None:
                self._entries.move_to_end(key)
            return compiled

    def put(self, pattern: str, flags: int, backend_name: str, compiled: Any) -> None:
        key = PatternKey(pattern, flags, backend_name)
        with self._lock:
            self._entries[key] = compiled
            self._entries.move_to_end(key)
            if self.maxsize > 0:
                while len(self._entries) > self.maxsize:
                    self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def size(self) -> int:
        with self._lock:
            return len(self._entries)


# ============================================================================
# Backends
# ============================================================================


class RegexBackend(ABC):
    """
    Runs compiled patterns under a time limit.

    Subclasses supply ``compile_pattern`` and ``_guard``; the public
    operations raise ``RegexTimeoutError`` when the limit is exceeded.
    """

    name = "abstract"

    def __init__(self, config: RegexConfig):
        self.config = config

    @abstractmethod
    def compile_pattern(self, pattern: str, flags: int = 0) -> Any:
        """Compile ``pattern``; bad patterns raise ``re.error``."""

    @abstractmethod
    def _guard(
        self,
        operation: str,
        compiled: Any,
        string: str,
        run: Callable[[Optional[float]], Any],
        timeout: float,
    ) -> Any:
        """Call ``run`` within ``timeout`` seconds."""

    def _timed_out(self, operation: str, compiled: Any, string: str, timeout: float) -> RegexTimeoutError:
        return RegexTimeoutError(compiled.pattern, len(string), timeout, self.name, operation)

    def search(self, compiled: Any, string: str, timeout: float) -> Optional[Any]:
        return self._guard(
            "search", compiled, string, lambda limit: self._search(compiled, string, limit), timeout
        )

    def sub(
        self, compiled: Any, repl: Replacement, string: str, count: int, timeout: float
    ) -> str:
        return self._guard(
            "sub",
            compiled,
            string,
            lambda limit: self._sub(compiled, repl, string, count, limit),
            timeout,
        )

    def finditer(self, compiled: Any, string: str, timeout: float) -> list[Any]:
        return self._guard(
            "finditer",
            compiled,
            string,
            lambda limit: list(self._finditer(compiled, string, limit)),
            timeout,
        )

    # Native calls; ``limit`` is None when the backend enforces time itself
    @staticmethod
    def _search(compiled: Any, string: str, limit: Optional[float]) -> Any:
        return compiled.search(string) if limit is None else compiled.search(string, timeout=limit)

    @staticmethod
    def _sub(compiled: Any, repl: Replacement, string: str, count: int, limit: Optional[float]) -> str:
        if limit is None:
            return compiled.sub(repl, string, count=count)
        return compiled.sub(repl, string, count=count, timeout=limit)

    @staticmethod
    def _finditer(compiled: Any, string: str, limit: Optional[float]) -> Any:
        return compiled.finditer(string) if limit is None else compiled.finditer(string, timeout=limit)


class RegexModuleBackend(RegexBackend):
    """The ``regex`` module, which enforces timeouts natively."""

    name = "regex_module"

    def compile_pattern(self, pattern: str, flags: int = 0) -> Any:
        try:
            return regex.compile(pattern, flags)
        except regex.error as exc:
            raise re.error(str(exc), pattern) from exc

    def _guard(
        self,
        operation: str,
        compiled: Any,
        string: str,
        run: Callable[[Optional[float]], Any],
        timeout: float,
    ) -> Any:
        try:
            return run(timeout)
        except TimeoutError as exc:
            raise self._timed_out(operation, compiled, string, timeout) from exc


class StdlibBackend(RegexBackend):
    """Stdlib ``re`` run in a worker thread that is abandoned on timeout."""

    name = "stdlib"

    def compile_pattern(self, pattern: str, flags: int = 0) -> Any:
        return re.compile(pattern, flags)

    def _guard(
        self,
        operation: str,
        compiled: Any,
        string: str,
        run: Callable[[Optional[float]], Any],
        timeout: float,
    ) -> Any:
        outcome: "queue.Queue[tuple[Optional[BaseException], Any]]" = queue.Queue(maxsize=1)

        def worker() -> None:
            try:
                outcome.put((None, run(None)))
            except Exception as exc:  # handed back to the caller below
                outcome.put((exc, None))

        thread = threading.Thread(target=worker, name=f"regex-{operation}", daemon=True)
        thread.start()
        thread.join(timeout)
        if thread.is_alive():
            raise self._timed_out(operation, compiled, string, timeout)
        error, value = outcome.get_nowait()
        if error is not None:
            raise error
        return value


BACKENDS: dict[str, type[RegexBackend]] = {
    "regex": RegexModuleBackend,
    "stdlib": StdlibBackend,
}


# ============================================================================
# Engine
# ============================================================================


class RegexEngine:
    """Compiles, caches and runs rule patterns on the configured backend."""

    def __init__(self, config: Optional[RegexConfig] = None):
        self.config = config or RegexConfig()
        backend_name = self.config.preferred_backend or DEFAULT_BACKEND
        if backend_name not in BACKENDS:
            raise RegexBackendError(
                f"Unknown regex backend '{backend_name}', expected one of {sorted(BACKENDS)}"
            )
        self.backend: RegexBackend = BACKENDS[backend_name](self.config)
        self.cache = PatternCache(self.config.cache_size) if self.config.cache_enabled else None
        self.metrics = RegexMetrics() if self.config.enable_metrics else None
        logger.debug("Using %s regex backend for repair rules", self.backend.name)

    def compile(self, pattern: str, flags: int = 0) -> Any:
        """Compiled form of ``pattern``, from the cache when possible."""
        if self.cache is None:
            return self.backend.compile_pattern(pattern, flags)

        compiled = self.cache.get(pattern, flags, self.backend.name)
        if self.metrics:
            self.metrics.observe_lookup(compiled is not None)
        if compiled is None:
            compiled = self.backend.compile_pattern(pattern, flags)
            self.cache.put(pattern, flags, self.backend.name, compiled)
        return compiled

    def _run(self, operation: str, pattern: str, call: Callable[[], Any], fallback: Any) -> Any:
        started = time.perf_counter()
        try:
            result = call()
        except RegexTimeoutError as exc:
            self._on_timeout(exc)
            return fallback

        elapsed_ms = (time.perf_counter() - started) * 1000
        if self.metrics:
            self.metrics.observe(pattern, elapsed_ms)
        if self.config.log_slow_patterns and elapsed_ms > self.config.slow_threshold_ms:
            logger.warning("Slow regex %s (%.2fms): %s", operation, elapsed_ms, pattern[:50])
        return result

    def _on_timeout(self, error: RegexTimeoutError) -> None:
        if self.metrics:
            self.metrics.observe_timeout(error.pattern)
        behavior = self.config.timeout_behavior
        if behavior is TimeoutBehavior.RAISE_EXCEPTION:
            raise error
        if behavior is TimeoutBehavior.LOG_AND_CONTINUE:
            logger.error("Regex %s timed out on pattern: %s", error.operation, error.pattern[:50])

    def search(
        self, pattern: str, string: str, flags: int = 0, timeout: Optional[float] = None
    ) -> Optional[Any]:
        """First match of ``pattern``, or None (also after a handled timeout)."""
        compiled = self.compile(pattern, flags)
        limit = self.config.search_timeout if timeout is None else timeout
        return self._run(
            "search", pattern, lambda: self.backend.search(compiled, string, limit), None
        )

    def sub(
        self,
        pattern: str,
        repl: Replacement,
        string: str,
        count: int = 0,
        flags: int = 0,
        timeout: Optional[float] = None,
    ) -> str:
        """Replace matches; a handled timeout returns ``string`` unchanged."""
        compiled = self.compile(pattern, flags)
        limit = self.config.sub_timeout if timeout is None else timeout
        return self._run(
            "sub",
            pattern,
            lambda: self.backend.sub(compiled, repl, string, count, limit),
            string,
        )

    def finditer(
        self, pattern: str, string: str, flags: int = 0, timeout: Optional[float] = None
    ) -> list[Any]:
        """All matches as a list; empty after a handled timeout."""
        compiled = self.compile(pattern, flags)
        limit = self.config.search_timeout if timeout is None else timeout
        return self._run(
            "finditer", pattern, lambda: self.backend.finditer(compiled, string, limit), []
        )

    def clear_cache(self) -> None:
        if self.cache is not None:
            self.cache.clear()


# ============================================================================
# Shared engine
# ============================================================================

_shared_engine: Optional[RegexEngine] = None
_shared_lock = threading.Lock()


def get_engine(config: Optional[RegexConfig] = None) -> RegexEngine:
    """
    The process-wide engine used by the rule executor.

    ``config`` only takes effect when the engine is first created.
    """
    global _shared_engine
    with _shared_lock:
        if _shared_engine is None:
            _shared_engine = RegexEngine(config)
        return _shared_engine


def reset_engine() -> None:
    """Drop the shared engine so the next ``get_engine`` builds a new one."""
    global _shared_engine
    with _shared_lock:
        _shared_engine = None
