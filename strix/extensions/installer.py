"""
Instance-extension installer.

Install order:

1. EligibilityChecker
2. PriorityOrdered extensions, sorted
3. Ordered extensions, sorted
4. Unordered extensions, as discovered
5. MergedDefinitionExtension subset, sorted and re-installed (moved to
   the end regardless of original tier)
6. ListenerDetector, re-installed so it is last
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from ..di.diagnostics import DIDiagnostics, DIEventType
from .capabilities import (
    Capability,
    ExtensionDescriptor,
    InstanceExtension,
    MergedDefinitionExtension,
    describe,
)
from .checker import EligibilityChecker
from .listeners import ListenerDetector, ListenerRegistry
from .ordering import sort_extensions

logger = logging.getLogger("strix.extensions.installer")


class InstanceExtensionInstaller:
    """
    Resolves, orders and installs the container's instance extensions.

    Installation only ever appends to the chain.
    """

    def __init__(
        self,
        factory: Any,
        listener_registry: ListenerRegistry,
        diagnostics: Optional[DIDiagnostics] = None,
        *,
        report_ineligible: bool = True,
    ):
        self.factory = factory
        self.listener_registry = listener_registry
        self.diagnostics = diagnostics or factory.diagnostics
        self.report_ineligible = report_ineligible
        self.checker: Optional[EligibilityChecker] = None

    def install(self) -> None:
        self.diagnostics.emit(DIEventType.PHASE_START, phase="instance")
        with self.diagnostics.measure(DIEventType.PHASE_END, phase="instance"):
            self._install_all()

    def _install_all(self) -> None:
        names = list(dict.fromkeys(
            self.factory.names_for_type(InstanceExtension, True, False)
        ))

        # Checker + declared extensions
        target_count = self.factory.instance_extension_count + 1 + len(names)
        self.checker = EligibilityChecker(
            self.factory,
            target_count,
            self.diagnostics,
            enabled=self.report_ineligible,
        )
        self._install([self.checker], "instance.checker")

        priority: List[InstanceExtension] = []
        internal: List[InstanceExtension] = []
        deferred_ordered: List[ExtensionDescriptor] = []
        deferred_unordered: List[ExtensionDescriptor] = []

        for name in names:
            descriptor = ExtensionDescriptor.discover(self.factory, name)
            if descriptor.capability is Capability.PRIORITY:
                priority.append(self._resolve(descriptor, internal))
            elif descriptor.capability is Capability.ORDERED:
                deferred_ordered.append(descriptor)
            else:
                deferred_unordered.append(descriptor)

        sort_extensions(priority, self.factory)
        self._install(priority, "instance.priority")

        ordered = [self._resolve(d, internal) for d in deferred_ordered]
        sort_extensions(ordered, self.factory)
        self._install(ordered, "instance.ordered")

        unordered = [self._resolve(d, internal) for d in deferred_unordered]
        self._install(unordered, "instance.unordered")

        sort_extensions(internal, self.factory)
        self._install(internal, "instance.internal")

        self._install([ListenerDetector(self.listener_registry)], "instance.listener")

        logger.debug(
            f"Installed {len(names)} instance extensions; "
            f"chain length is now {self.factory.instance_extension_count}"
        )

    def _resolve(
        self,
        descriptor: ExtensionDescriptor,
        internal: List[InstanceExtension],
    ) -> InstanceExtension:
        extension = descriptor.resolve(self.factory, InstanceExtension)
        if isinstance(extension, MergedDefinitionExtension):
            internal.append(extension)
        return extension

    def _install(self, extensions: List[InstanceExtension], phase: str) -> None:
        if not extensions:
            return

        self.factory.add_instance_extensions(extensions)

        for extension in extensions:
            self.diagnostics.emit(
                DIEventType.EXTENSION_INSTALLED,
                phase=phase,
                extension=describe(extension),
            )
