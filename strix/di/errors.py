"""
DI-specific error types with rich diagnostics.
"""

from typing import List, Optional, Any


class DIError(Exception):
    """Base exception for DI errors."""
    pass


class DefinitionNotFoundError(DIError):
    """No definition or singleton registered under the requested name."""
    
    def __init__(
        self,
        name: str,
        candidates: Optional[List[str]] = None,
        requested_by: Optional[str] = None,
    ):
        self.name = name
        self.candidates = candidates or []
        self.requested_by = requested_by
        
        msg = f"No definition found for name={name!r}"
        
        if requested_by:
            msg += f"\nRequested by: {requested_by}"
        
        if self.candidates:
            msg += "\n\nSimilar names:"
            for candidate in self.candidates:
                msg += f"\n  - {candidate}"
        
        msg += "\n\nSuggested fixes:"
        msg += f"\n  - Register a definition named {name!r}"
        msg += "\n  - Check for typos in the requested name"
        
        super().__init__(msg)


class DefinitionOverrideError(DIError):
    """A definition was registered twice while overriding is disabled."""
    
    def __init__(self, name: str, existing: Any, new: Any):
        self.name = name
        self.existing = existing
        self.new = new
        
        msg = (
            f"Cannot register definition {name!r}: "
            f"{existing!r} is already bound under that name."
            f"\n\nSuggested fixes:"
            f"\n  - Pick a distinct name for {new!r}"
            f"\n  - Remove the existing definition first"
            f"\n  - Enable allow_definition_overriding"
        )
        
        super().__init__(msg)


class CurrentlyInCreationError(DIError):
    """Object requested again while it is still being created."""
    
    def __init__(self, name: str, chain: Optional[List[str]] = None):
        self.name = name
        self.chain = chain or []
        
        msg = f"Object {name!r} is currently in creation: is there an unresolvable circular reference?"
        if self.chain:
            msg += "\n\nCreation chain:"
            for i, link in enumerate(self.chain + [name]):
                arrow = " -> " if i < len(self.chain) else ""
                msg += f"\n  {link}{arrow}"
        
        msg += "\n\nSuggested fixes:"
        msg += "\n  - Break the cycle by resolving one side lazily"
        msg += "\n  - Move the shared dependency into a separate definition"
        
        super().__init__(msg)


class BeanTypeError(DIError):
    """Resolved object is not an instance of the required type."""
    
    def __init__(self, name: str, required: type, actual: type):
        self.name = name
        self.required = required
        self.actual = actual
        
        msg = (
            f"Object {name!r} is expected to be of type "
            f"{required.__module__}.{required.__qualname__} but was actually "
            f"{actual.__module__}.{actual.__qualname__}"
        )
        
        super().__init__(msg)


class ReiterationLimitError(DIError):
    """Registry extensions kept registering new registry extensions."""
    
    def __init__(self, rounds: int, pending: List[str]):
        self.rounds = rounds
        self.pending = pending
        
        msg = (
            f"Registry extension reiteration did not converge after {rounds} rounds."
            f"\nStill discovering: {', '.join(pending) or '(none)'}"
            f"\n\nSuggested fixes:"
            f"\n  - Make sure registry extensions register a bounded set of names"
            f"\n  - Raise max_reiteration_rounds if the chain is legitimately deep"
        )
        
        super().__init__(msg)


class ContextStateError(DIError):
    """Context operation not allowed in its current phase."""
    
    def __init__(self, operation: str, phase: str):
        self.operation = operation
        self.phase = phase
        
        msg = f"Cannot {operation} context in phase {phase!r}"
        
        super().__init__(msg)
