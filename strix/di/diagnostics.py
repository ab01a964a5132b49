"""
DI Diagnostics - Observability and event tracking for containers and bootstrap.
"""

import time
from typing import Any, Dict, List, Optional, Protocol
from enum import Enum
import dataclasses
import logging

logger = logging.getLogger("strix.di.diagnostics")

class DIEventType(Enum):
    """Types of DI events."""
    REGISTRATION = "registration"
    INSTANTIATION = "instantiation"
    PHASE_START = "phase_start"
    PHASE_END = "phase_end"
    EXTENSION_INVOKED = "extension_invoked"
    EXTENSION_FAILED = "extension_failed"
    EXTENSION_INSTALLED = "extension_installed"
    REITERATION_ROUND = "reiteration_round"
    INELIGIBLE_BEAN = "ineligible_bean"
    METADATA_CACHE_CLEARED = "metadata_cache_cleared"
    CONTEXT_REFRESHED = "context_refreshed"
    CONTEXT_CLOSED = "context_closed"

@dataclasses.dataclass
class DIEvent:
    """A diagnostic event in the DI system."""
    type: DIEventType
    timestamp: float = dataclasses.field(default_factory=time.time)
    name: Optional[str] = None
    phase: Optional[str] = None
    extension: Optional[str] = None
    duration: Optional[float] = None
    error: Optional[Exception] = None
    metadata: Dict[str, Any] = dataclasses.field(default_factory=dict)

class DiagnosticListener(Protocol):
    """Interface for DI diagnostic listeners."""
    def on_event(self, event: DIEvent) -> None:
        """Called when a DI event occurs."""
        ...

class ConsoleDiagnosticListener:
    """Simple diagnostic listener that logs to console/logging."""
    def __init__(self, log_level: int = logging.DEBUG):
        self.log_level = log_level

    def on_event(self, event: DIEvent) -> None:
        if event.type == DIEventType.REGISTRATION:
            logger.log(self.log_level, f"Registered definition '{event.name}'")
        elif event.type == DIEventType.INSTANTIATION:
            logger.log(self.log_level, f"Created object '{event.name}'")
        elif event.type == DIEventType.PHASE_START:
            logger.log(self.log_level, f"Entering {event.phase} phase")
        elif event.type == DIEventType.PHASE_END:
            logger.log(self.log_level, f"Finished {event.phase} phase in {event.duration:.4f}s")
        elif event.type == DIEventType.EXTENSION_INVOKED:
            logger.log(self.log_level, f"✓ {event.phase}: {event.extension} ({event.duration:.4f}s)")
        elif event.type == DIEventType.EXTENSION_FAILED:
            logger.log(logging.ERROR, f"✗ {event.phase}: {event.extension} failed: {event.error}")
        elif event.type == DIEventType.EXTENSION_INSTALLED:
            logger.log(self.log_level, f"Installed instance extension {event.extension}")
        elif event.type == DIEventType.REITERATION_ROUND:
            logger.log(self.log_level, f"Reiteration round {event.metadata.get('round')}: {event.metadata.get('discovered')}")
        elif event.type == DIEventType.INELIGIBLE_BEAN:
            logger.log(logging.INFO, f"Object '{event.name}' created before all instance extensions were installed")
        elif event.type == DIEventType.CONTEXT_REFRESHED:
            logger.log(logging.INFO, f"Context refreshed in {event.duration:.4f}s")
        elif event.type == DIEventType.CONTEXT_CLOSED:
            logger.log(logging.INFO, "Context closed")

class DIDiagnostics:
    """Coordinator for DI diagnostic listeners."""
    def __init__(self):
        self._listeners: List[DiagnosticListener] = []

    def add_listener(self, listener: DiagnosticListener) -> None:
        """Add a diagnostic listener."""
        self._listeners.append(listener)

    def remove_listener(self, listener: DiagnosticListener) -> None:
        """Remove a previously added listener (no-op if absent)."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def emit(self, event_type: DIEventType, **kwargs) -> None:
        """Emit a diagnostic event to all listeners."""
        if not self._listeners:
            return
        event = DIEvent(type=event_type, **kwargs)
        for listener in self._listeners:
            try:
                listener.on_event(event)
            except Exception as e:
                # Diagnostics should never crash the bootstrap
                logger.error(f"Diagnostic listener error: {e}")

    def measure(
        self,
        event_type: DIEventType,
        failure_type: Optional[DIEventType] = None,
        **kwargs,
    ):
        """
        Context manager to measure duration of an event.

        Emits ``event_type`` on success and ``failure_type`` (if given) when
        the body raises. The exception is never swallowed.
        """
        return _DiagnosticMeasure(self, event_type, failure_type, **kwargs)

class _DiagnosticMeasure:
    def __init__(
        self,
        diagnostics: DIDiagnostics,
        event_type: DIEventType,
        failure_type: Optional[DIEventType],
        **kwargs,
    ):
        self.diagnostics = diagnostics
        self.event_type = event_type
        self.failure_type = failure_type
        self.kwargs = kwargs
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.perf_counter() - self.start_time
        if exc_type:
            if self.failure_type is not None:
                self.diagnostics.emit(
                    self.failure_type,
                    duration=duration,
                    error=exc_val,
                    **self.kwargs
                )
        else:
            self.diagnostics.emit(
                self.event_type,
                duration=duration,
                **self.kwargs
            )
        return False
