"""
Factory phase - one tiered pass over container-defined factory extensions.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from ..di.diagnostics import DIDiagnostics, DIEventType
from .capabilities import (
    Capability,
    ExtensionDescriptor,
    FactoryExtension,
    describe,
)
from .ordering import sort_extensions
from .processed import ProcessedSet

logger = logging.getLogger("strix.extensions.factory_phase")


def invoke_factory_callbacks(
    extensions: Iterable[FactoryExtension],
    factory: Any,
    diagnostics: DIDiagnostics,
    phase: str = "factory",
) -> None:
    """Call ``process_factory`` on each extension, in the given order."""
    for extension in extensions:
        with diagnostics.measure(
            DIEventType.EXTENSION_INVOKED,
            DIEventType.EXTENSION_FAILED,
            phase=phase,
            extension=describe(extension),
        ):
            extension.process_factory(factory)


class FactoryPhaseOrchestrator:
    """
    Invokes factory extensions the registry phase did not already handle.

    Names are partitioned by tier before anything is created; only the
    PriorityOrdered tier is instantiated up front, so lower tiers are not
    created ahead of higher-tier extensions that might affect them.
    """

    def __init__(
        self,
        factory: Any,
        processed: ProcessedSet,
        diagnostics: Optional[DIDiagnostics] = None,
    ):
        self.factory = factory
        self.processed = processed
        self.diagnostics = diagnostics or factory.diagnostics

    def run(self) -> None:
        self.diagnostics.emit(DIEventType.PHASE_START, phase="factory")
        with self.diagnostics.measure(DIEventType.PHASE_END, phase="factory"):
            self._run()

    def _run(self) -> None:
        names = self.factory.names_for_type(FactoryExtension, True, False)

        priority: List[FactoryExtension] = []
        deferred_ordered: List[ExtensionDescriptor] = []
        deferred_unordered: List[ExtensionDescriptor] = []

        for name in names:
            if name in self.processed:
                # Already invoked during the registry phase
                continue

            descriptor = ExtensionDescriptor.discover(self.factory, name)
            if descriptor.capability is Capability.PRIORITY:
                priority.extend(self._resolve_all([descriptor]))
            elif descriptor.capability is Capability.ORDERED:
                deferred_ordered.append(descriptor)
            else:
                deferred_unordered.append(descriptor)

        sort_extensions(priority, self.factory)
        invoke_factory_callbacks(priority, self.factory, self.diagnostics, "factory.priority")

        ordered = self._resolve_all(deferred_ordered)
        sort_extensions(ordered, self.factory)
        invoke_factory_callbacks(ordered, self.factory, self.diagnostics, "factory.ordered")

        unordered = self._resolve_all(deferred_unordered)
        invoke_factory_callbacks(unordered, self.factory, self.diagnostics, "factory.unordered")

        logger.debug(
            f"Factory phase invoked {len(priority)} priority, "
            f"{len(ordered)} ordered and {len(unordered)} unordered extensions"
        )

    def _resolve_all(
        self,
        descriptors: List[ExtensionDescriptor],
    ) -> List[FactoryExtension]:
        resolved = []
        for descriptor in descriptors:
            # A name listed twice, or claimed since discovery, is invoked once
            if not self.processed.add(descriptor.name):
                continue
            resolved.append(descriptor.resolve(self.factory, FactoryExtension))
        return resolved
