"""
Extension lifecycle orchestration.

Discovers, orders, instantiates and invokes registry and factory extensions
during bootstrap, and installs instance extensions into the container's
creation pipeline.
"""

from .capabilities import (
    HIGHEST_PRECEDENCE,
    LOWEST_PRECEDENCE,
    Ordered,
    PriorityOrdered,
    order,
    get_order,
    Capability,
    FactoryExtension,
    RegistryExtension,
    InstanceExtension,
    MergedDefinitionExtension,
    ExtensionDescriptor,
)

from .ordering import OrderComparator, sort_extensions
from .processed import ProcessedSet
from .registry_phase import RegistryPhaseOrchestrator
from .factory_phase import FactoryPhaseOrchestrator
from .installer import InstanceExtensionInstaller
from .checker import EligibilityChecker
from .listeners import ApplicationListener, ListenerRegistry, ListenerDetector
from .delegate import invoke_factory_extensions, register_instance_extensions

__all__ = [
    # Capabilities
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "Ordered",
    "PriorityOrdered",
    "order",
    "get_order",
    "Capability",
    "FactoryExtension",
    "RegistryExtension",
    "InstanceExtension",
    "MergedDefinitionExtension",
    "ExtensionDescriptor",
    
    # Ordering
    "OrderComparator",
    "sort_extensions",
    "ProcessedSet",
    
    # Orchestrators
    "RegistryPhaseOrchestrator",
    "FactoryPhaseOrchestrator",
    "InstanceExtensionInstaller",
    "EligibilityChecker",
    
    # Listeners
    "ApplicationListener",
    "ListenerRegistry",
    "ListenerDetector",
    
    # Entry points
    "invoke_factory_extensions",
    "register_instance_extensions",
]
