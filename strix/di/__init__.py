"""
Strix container primitives.

Definitions, the listable object factory, the registry-capable container,
diagnostics and errors. The extension orchestration that bootstraps a
container lives in :mod:`strix.extensions`.
"""

from .core import (
    Role,
    Ref,
    Definition,
    DefinitionRegistry,
    ObjectFactory,
    Container,
)

from .diagnostics import (
    DIEventType,
    DIEvent,
    DIDiagnostics,
    ConsoleDiagnosticListener,
)

from .errors import (
    DIError,
    DefinitionNotFoundError,
    DefinitionOverrideError,
    CurrentlyInCreationError,
    BeanTypeError,
    ReiterationLimitError,
    ContextStateError,
)

__all__ = [
    # Core types
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
]
