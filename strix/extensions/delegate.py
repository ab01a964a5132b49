"""
Bootstrap entry points for extension handling.

Both are synchronous and run on the thread that refreshes the container.
Extension failures propagate unchanged; nothing already applied is rolled
back.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ..di.diagnostics import DIDiagnostics
from .capabilities import FactoryExtension
from .factory_phase import FactoryPhaseOrchestrator
from .installer import InstanceExtensionInstaller
from .listeners import ListenerRegistry
from .processed import ProcessedSet
from .registry_phase import RegistryPhaseOrchestrator


def invoke_factory_extensions(
    factory: Any,
    extensions: Sequence[FactoryExtension] = (),
    *,
    diagnostics: Optional[DIDiagnostics] = None,
    max_reiteration_rounds: Optional[int] = None,
) -> None:
    """
    Run the registry and factory extension phases.

    Args:
        factory: Container (registry-capable) or plain object factory
        extensions: Externally supplied extensions; they run before any
            container-defined ones
        diagnostics: Event sink (defaults to the factory's)
        max_reiteration_rounds: Optional bound on registry reiteration
    """
    diagnostics = diagnostics or factory.diagnostics
    processed = ProcessedSet()

    RegistryPhaseOrchestrator(
        factory,
        processed,
        diagnostics,
        max_rounds=max_reiteration_rounds,
    ).run(list(extensions))

    FactoryPhaseOrchestrator(factory, processed, diagnostics).run()

    # Extensions may have rewritten definitions that were already cached
    factory.clear_metadata_cache()


def register_instance_extensions(
    factory: Any,
    listener_registry: ListenerRegistry,
    *,
    diagnostics: Optional[DIDiagnostics] = None,
    report_ineligible: bool = True,
) -> None:
    """
    Install the factory's instance extensions, bracketed by the eligibility
    checker and the listener detector.
    """
    InstanceExtensionInstaller(
        factory,
        listener_registry,
        diagnostics,
        report_ineligible=report_ineligible,
    ).install()
