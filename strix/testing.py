"""
Testing utilities for containers and extensions.

Provides recording extensions that log each callback to a shared
:class:`Journal`, a diagnostics listener that keeps every event, and
pytest fixtures.
"""

from typing import Any, Callable, List, Optional, Tuple

from .context import ApplicationContext
from .di.core import Container
from .di.diagnostics import DIDiagnostics, DIEvent, DIEventType
from .extensions.capabilities import (
    FactoryExtension,
    InstanceExtension,
    RegistryExtension,
)


class Journal:
    """Ordered log of ``(label, callback)`` entries."""

    def __init__(self):
        self.entries: List[Tuple[str, str]] = []

    def record(self, label: str, callback: str) -> None:
        self.entries.append((label, callback))

    def labels(self, callback: Optional[str] = None) -> List[str]:
        return [
            label for label, kind in self.entries
            if callback is None or kind == callback
        ]

    def clear(self) -> None:
        self.entries.clear()


class RecordingDiagnostics:
    """Diagnostic listener that keeps every event for assertions."""

    def __init__(self, diagnostics: Optional[DIDiagnostics] = None):
        self.events: List[DIEvent] = []
        if diagnostics is not None:
            diagnostics.add_listener(self)

    def on_event(self, event: DIEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: DIEventType) -> List[DIEvent]:
        return [e for e in self.events if e.type == event_type]

    def invoked(self, phase_prefix: str = "") -> List[str]:
        """Extension labels of EXTENSION_INVOKED events, optionally by phase."""
        return [
            e.extension for e in self.of_type(DIEventType.EXTENSION_INVOKED)
            if (e.phase or "").startswith(phase_prefix)
        ]


class RecordingFactoryExtension(FactoryExtension):
    """Factory extension that journals its callback."""

    def __init__(self, journal: Journal, label: str):
        self.journal = journal
        self.label = label

    def process_factory(self, factory: Any) -> None:
        self.journal.record(self.label, "factory")


class RecordingRegistryExtension(RegistryExtension):
    """
    Registry extension that journals both callbacks.

    ``on_registry`` (optional) runs after journaling, e.g. to register
    further definitions.
    """

    def __init__(
        self,
        journal: Journal,
        label: str,
        on_registry: Optional[Callable[[Any], None]] = None,
    ):
        self.journal = journal
        self.label = label
        self.on_registry = on_registry

    def process_registry(self, registry: Any) -> None:
        self.journal.record(self.label, "registry")
        if self.on_registry is not None:
            self.on_registry(registry)

    def process_factory(self, factory: Any) -> None:
        self.journal.record(self.label, "factory")


class RecordingInstanceExtension(InstanceExtension):
    """Instance extension that journals every object it initializes."""

    def __init__(self, journal: Journal, label: str):
        self.journal = journal
        self.label = label

    def after_init(self, bean: Any, name: str) -> Any:
        self.journal.record(self.label, f"after_init:{name}")
        return bean

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label!r})"


# Pytest fixtures (if pytest is available)
try:
    import pytest

    @pytest.fixture
    def journal():
        """Fresh callback journal."""
        return Journal()

    @pytest.fixture
    def strix_container():
        """Empty registry-capable container."""
        return Container()

    @pytest.fixture
    def recorder(strix_container):
        """Recording diagnostics attached to ``strix_container``."""
        return RecordingDiagnostics(strix_container.diagnostics)

    @pytest.fixture
    def strix_context(strix_container):
        """Application context over ``strix_container``; closed afterwards."""
        context = ApplicationContext(strix_container)
        yield context
        context.close()

except ImportError:
    # pytest not available - skip fixtures
    pass
