"""
Registry phase - drives registry extensions to a fixed point.

Tiers, strictly in order:

1. Externally supplied registry extensions, in caller order, unsorted.
2. PriorityOrdered registry extensions defined in the container.
3. Ordered registry extensions (the registry is queried again; tier 2 may
   have registered new definitions).
4. Reiteration: every remaining registry extension, round after round,
   until a round discovers no new name.

Then ``process_factory`` runs on every registry extension in cumulative
invocation order, followed by the externally supplied plain factory
extensions in caller order.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from ..di.core import DefinitionRegistry
from ..di.diagnostics import DIDiagnostics, DIEventType
from ..di.errors import ReiterationLimitError
from .capabilities import (
    FactoryExtension,
    Ordered,
    PriorityOrdered,
    RegistryExtension,
    describe,
)
from .factory_phase import invoke_factory_callbacks
from .ordering import sort_extensions
from .processed import ProcessedSet

logger = logging.getLogger("strix.extensions.registry_phase")


class RegistryPhaseOrchestrator:
    """
    Runs the registry extension tiers against a container.

    Containers without the registry capability skip the tiers: only the
    supplied extensions' ``process_factory`` is invoked.

    Termination of the reiteration tier depends on extensions eventually
    registering no new registry extensions. Rounds are counted in
    ``rounds`` and emitted as ``REITERATION_ROUND`` events; set
    ``max_rounds`` to bound the loop.
    """

    def __init__(
        self,
        factory: Any,
        processed: Optional[ProcessedSet] = None,
        diagnostics: Optional[DIDiagnostics] = None,
        *,
        max_rounds: Optional[int] = None,
    ):
        self.factory = factory
        self.processed = processed if processed is not None else ProcessedSet()
        self.diagnostics = diagnostics or factory.diagnostics
        self.max_rounds = max_rounds
        self.rounds = 0
        self.invoked: List[RegistryExtension] = []

    def run(self, extensions: Sequence[FactoryExtension]) -> None:
        """
        Run the phase.

        Args:
            extensions: Externally supplied registry/factory extensions
        """
        self.diagnostics.emit(DIEventType.PHASE_START, phase="registry")
        with self.diagnostics.measure(DIEventType.PHASE_END, phase="registry"):
            if isinstance(self.factory, DefinitionRegistry):
                self._run_tiers(self.factory, extensions)
            else:
                logger.debug(
                    f"{type(self.factory).__name__} has no registry capability; "
                    f"invoking {len(extensions)} supplied extensions directly"
                )
                invoke_factory_callbacks(
                    extensions, self.factory, self.diagnostics, "factory.supplied"
                )

    def _run_tiers(self, registry: Any, extensions: Sequence[FactoryExtension]) -> None:
        regular: List[FactoryExtension] = []

        # Supplied extensions go first and are never sorted
        for extension in extensions:
            if isinstance(extension, RegistryExtension):
                self._invoke([extension], registry, "registry.supplied")
            else:
                regular.append(extension)

        current = [
            self._resolve(name)
            for name in self._candidate_names()
            if name not in self.processed
            and self.factory.is_type_match(name, PriorityOrdered)
        ]
        sort_extensions(current, self.factory)
        self._invoke(current, registry, "registry.priority")

        # Query again: priority extensions may have registered more
        current = [
            self._resolve(name)
            for name in self._candidate_names()
            if name not in self.processed
            and self.factory.is_type_match(name, Ordered)
        ]
        sort_extensions(current, self.factory)
        self._invoke(current, registry, "registry.ordered")

        self._reiterate(registry)

        invoke_factory_callbacks(
            self.invoked, self.factory, self.diagnostics, "factory.registry"
        )
        invoke_factory_callbacks(
            regular, self.factory, self.diagnostics, "factory.supplied"
        )

    def _reiterate(self, registry: Any) -> None:
        while True:
            discovered = [
                name for name in self._candidate_names()
                if name not in self.processed
            ]
            if not discovered:
                break

            self.rounds += 1
            self.diagnostics.emit(
                DIEventType.REITERATION_ROUND,
                phase="registry.reiteration",
                metadata={"round": self.rounds, "discovered": discovered},
            )
            if self.max_rounds is not None and self.rounds > self.max_rounds:
                raise ReiterationLimitError(self.max_rounds, discovered)

            current = [
                self._resolve(name)
                for name in discovered
                if name not in self.processed
            ]
            sort_extensions(current, self.factory)
            self._invoke(current, registry, "registry.reiteration")

        if self.rounds > 1:
            logger.debug(f"Registry extensions converged after {self.rounds} rounds")

    def _candidate_names(self) -> List[str]:
        return self.factory.names_for_type(RegistryExtension, True, False)

    def _resolve(self, name: str) -> RegistryExtension:
        self.processed.add(name)
        return self.factory.get(name, RegistryExtension)

    def _invoke(
        self,
        extensions: List[RegistryExtension],
        registry: Any,
        phase: str,
    ) -> None:
        for extension in extensions:
            with self.diagnostics.measure(
                DIEventType.EXTENSION_INVOKED,
                DIEventType.EXTENSION_FAILED,
                phase=phase,
                extension=describe(extension),
            ):
                extension.process_registry(registry)
            self.invoked.append(extension)
