"""
Application Context - owns a container and drives its bootstrap.

``refresh()`` runs, in order:

1. install the listener detector
2. registry and factory extension phases
3. instance-extension installation
4. creation of non-lazy singletons
5. publication of :class:`ContextRefreshedEvent`
"""

from typing import Any, List, Optional, Type, TypeVar
from dataclasses import dataclass, field
from enum import Enum
import logging
import time

from .config import BootstrapConfig
from .di.core import Container, ObjectFactory
from .di.diagnostics import ConsoleDiagnosticListener, DIDiagnostics, DIEventType
from .di.errors import ContextStateError
from .extensions.capabilities import FactoryExtension
from .extensions.delegate import invoke_factory_extensions, register_instance_extensions
from .extensions.listeners import ApplicationListener, ListenerDetector

logger = logging.getLogger("strix.context")

T = TypeVar("T")


class ContextPhase(Enum):
    """Context lifecycle phases."""
    INIT = "init"
    REFRESHING = "refreshing"
    ACTIVE = "active"
    FAILED = "failed"
    CLOSED = "closed"


@dataclass
class ApplicationEvent:
    """Base class for events published by a context."""
    source: Any
    timestamp: float = field(default_factory=time.time)


@dataclass
class ContextRefreshedEvent(ApplicationEvent):
    """Published once every non-lazy singleton exists."""


@dataclass
class ContextClosedEvent(ApplicationEvent):
    """Published before singletons are destroyed."""


class ApplicationContext:
    """
    Bootstrap coordinator for one container.

    Example:
        context = ApplicationContext()
        context.container.register("audit", AuditExtension)
        context.add_factory_extension(PlaceholderConfigurer(env))
        with context:
            service = context.get("service")
    """

    def __init__(
        self,
        container: Optional[ObjectFactory] = None,
        config: Optional[BootstrapConfig] = None,
        diagnostics: Optional[DIDiagnostics] = None,
    ):
        self.config = config or BootstrapConfig()

        if container is not None:
            self.container = container
            self.diagnostics = diagnostics or container.diagnostics
        else:
            self.diagnostics = diagnostics or DIDiagnostics()
            self.container = Container(
                diagnostics=self.diagnostics,
                allow_definition_overriding=self.config.allow_definition_overriding,
            )

        if self.config.console_diagnostics:
            self.diagnostics.add_listener(
                ConsoleDiagnosticListener(logging.getLevelName(self.config.log_level))
            )

        self.phase = ContextPhase.INIT
        self._factory_extensions: List[FactoryExtension] = []
        self._listeners: List[ApplicationListener] = []

    # ── Externally supplied extensions ──

    def add_factory_extension(self, extension: FactoryExtension) -> None:
        """Supply an extension that runs before any container-defined one."""
        self._factory_extensions.append(extension)

    @property
    def factory_extensions(self) -> tuple:
        return tuple(self._factory_extensions)

    # ── Events ──

    def add_listener(self, listener: ApplicationListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ApplicationListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listeners(self) -> tuple:
        return tuple(self._listeners)

    def publish_event(self, event: Any) -> None:
        """Deliver an event to every listener; listener errors propagate."""
        for listener in list(self._listeners):
            listener.on_application_event(event)

    # ── Lifecycle ──

    def refresh(self) -> None:
        """
        Bootstrap the container.

        Raises:
            ContextStateError: If not in INIT phase
            Exception: Any extension failure, unchanged (phase becomes FAILED)
        """
        if self.phase is not ContextPhase.INIT:
            raise ContextStateError("refresh", self.phase.value)

        self.phase = ContextPhase.REFRESHING
        start = time.perf_counter()
        logger.info("Refreshing application context...")

        try:
            self.container.add_instance_extension(ListenerDetector(self))

            invoke_factory_extensions(
                self.container,
                self._factory_extensions,
                diagnostics=self.diagnostics,
                max_reiteration_rounds=self.config.max_reiteration_rounds,
            )

            register_instance_extensions(
                self.container,
                self,
                diagnostics=self.diagnostics,
                report_ineligible=self.config.report_ineligible_beans,
            )

            if self.config.preinstantiate_singletons:
                self.container.preinstantiate_singletons()

        except Exception as e:
            self.phase = ContextPhase.FAILED
            logger.error(f"Context refresh failed: {e}")
            raise

        self.phase = ContextPhase.ACTIVE
        duration = time.perf_counter() - start
        self.diagnostics.emit(DIEventType.CONTEXT_REFRESHED, duration=duration)
        logger.info(f"✅ Context refreshed in {duration:.4f}s")

        self.publish_event(ContextRefreshedEvent(self))

    def close(self) -> None:
        """Publish the closed event and destroy singletons."""
        if self.phase is ContextPhase.CLOSED:
            return

        if self.phase is ContextPhase.ACTIVE:
            self.publish_event(ContextClosedEvent(self))

        self.container.destroy_singletons()
        self._listeners.clear()
        self.phase = ContextPhase.CLOSED
        self.diagnostics.emit(DIEventType.CONTEXT_CLOSED)

    @property
    def is_active(self) -> bool:
        return self.phase is ContextPhase.ACTIVE

    def get(self, name: str, required_type: Optional[Type[T]] = None) -> T:
        """Resolve an object from an active context."""
        if self.phase is not ContextPhase.ACTIVE:
            raise ContextStateError("resolve from", self.phase.value)
        return self.container.get(name, required_type)

    def __enter__(self) -> "ApplicationContext":
        if self.phase is ContextPhase.INIT:
            self.refresh()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
