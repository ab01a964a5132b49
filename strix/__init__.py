"""
Strix - extension lifecycle for a dependency-injection container.

Example:
    from strix import ApplicationContext, RegistryExtension, PriorityOrdered

    class ScanComponents(RegistryExtension, PriorityOrdered):
        def process_registry(self, registry):
            registry.register("users", UserService)

    context = ApplicationContext()
    context.container.register("scanner", ScanComponents)
    with context:
        users = context.get("users")
"""

__version__ = "0.1.0"

from .di import (
    Role,
    Ref,
    Definition,
    DefinitionRegistry,
    ObjectFactory,
    Container,
    DIEventType,
    DIEvent,
    DIDiagnostics,
    ConsoleDiagnosticListener,
    DIError,
    DefinitionNotFoundError,
    DefinitionOverrideError,
    CurrentlyInCreationError,
    BeanTypeError,
    ReiterationLimitError,
    ContextStateError,
)

from .extensions import (
    HIGHEST_PRECEDENCE,
    LOWEST_PRECEDENCE,
    Ordered,
    PriorityOrdered,
    order,
    FactoryExtension,
    RegistryExtension,
    InstanceExtension,
    MergedDefinitionExtension,
    OrderComparator,
    ProcessedSet,
    RegistryPhaseOrchestrator,
    FactoryPhaseOrchestrator,
    InstanceExtensionInstaller,
    EligibilityChecker,
    ApplicationListener,
    ListenerDetector,
    invoke_factory_extensions,
    register_instance_extensions,
)

from .config import BootstrapConfig, ConfigLoader, ConfigError
from .context import (
    ApplicationContext,
    ApplicationEvent,
    ContextClosedEvent,
    ContextPhase,
    ContextRefreshedEvent,
)

__all__ = [
    "__version__",

    # Container
    "Role",
    "Ref",
    "Definition",
    "DefinitionRegistry",
    "ObjectFactory",
    "Container",

    # Diagnostics
    "DIEventType",
    "DIEvent",
    "DIDiagnostics",
    "ConsoleDiagnosticListener",

    # Errors
    "DIError",
    "DefinitionNotFoundError",
    "DefinitionOverrideError",
    "CurrentlyInCreationError",
    "BeanTypeError",
    "ReiterationLimitError",
    "ContextStateError",

    # Extensions
    "HIGHEST_PRECEDENCE",
    "LOWEST_PRECEDENCE",
    "Ordered",
    "PriorityOrdered",
    "order",
    "FactoryExtension",
    "RegistryExtension",
    "InstanceExtension",
    "MergedDefinitionExtension",
    "OrderComparator",
    "ProcessedSet",
    "RegistryPhaseOrchestrator",
    "FactoryPhaseOrchestrator",
    "InstanceExtensionInstaller",
    "EligibilityChecker",
    "ApplicationListener",
    "ListenerDetector",
    "invoke_factory_extensions",
    "register_instance_extensions",

    # Config
    "BootstrapConfig",
    "ConfigLoader",
    "ConfigError",

    # Context
    "ApplicationContext",
    "ApplicationEvent",
    "ContextClosedEvent",
    "ContextPhase",
    "ContextRefreshedEvent",
]
