"""
Application listeners and the reserved listener-detection extension.
"""

import logging
from typing import Any, Dict, Protocol, runtime_checkable

from .capabilities import MergedDefinitionExtension

logger = logging.getLogger("strix.extensions.listeners")


@runtime_checkable
class ApplicationListener(Protocol):
    """Receives events published by an application context."""

    def on_application_event(self, event: Any) -> None:
        ...


@runtime_checkable
class ListenerRegistry(Protocol):
    """Anything listeners can be added to (usually the application context)."""

    def add_listener(self, listener: ApplicationListener) -> None:
        ...

    def remove_listener(self, listener: ApplicationListener) -> None:
        ...


class ListenerDetector(MergedDefinitionExtension):
    """
    Registers singleton objects that are application listeners.

    Always the last extension in the chain. Detectors for the same registry
    compare equal, so installing a fresh one moves it to the end.
    """

    def __init__(self, registry: ListenerRegistry):
        self.registry = registry
        self._singleton_names: Dict[str, bool] = {}

    def on_merged_definition(self, definition: Any, bean_type: type, name: str) -> None:
        if isinstance(bean_type, type) and issubclass(bean_type, ApplicationListener):
            self._singleton_names[name] = definition.is_singleton

    def after_init(self, bean: Any, name: str) -> Any:
        if isinstance(bean, ApplicationListener):
            singleton = self._singleton_names.get(name)
            if singleton:
                self.registry.add_listener(bean)
            elif singleton is False:
                # Prototype listeners would be registered once per creation
                logger.warning(
                    f"Inner object '{name}' implements ApplicationListener but is not "
                    f"reachable for event multicasting since it is not a singleton"
                )
                self._singleton_names.pop(name, None)
        return bean

    def reset_definition(self, name: str) -> None:
        self._singleton_names.pop(name, None)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ListenerDetector) and other.registry is self.registry

    def __hash__(self) -> int:
        return id(self.registry)

    def __repr__(self) -> str:
        return f"ListenerDetector(registry={type(self.registry).__name__})"
