"""
Core container types and protocols.

Defines object definitions, the listable object factory the extension
orchestrator queries, and the registry-capable container that registry
extensions mutate during bootstrap.
"""

from typing import (
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Type,
    TypeVar,
    get_type_hints,
    runtime_checkable,
)
from dataclasses import dataclass, field, replace
from enum import IntEnum
from types import GenericAlias
import logging

from .diagnostics import DIDiagnostics, DIEventType
from .errors import (
    BeanTypeError,
    CurrentlyInCreationError,
    DefinitionNotFoundError,
    DefinitionOverrideError,
)

logger = logging.getLogger("strix.di.core")

T = TypeVar("T")

_SCOPES = frozenset(("singleton", "prototype"))

# Sentinel for "no singleton yet" (None is a legal object)
_MISSING = object()


class Role(IntEnum):
    """Role hint for a definition."""

    APPLICATION = 0     # Regular user-defined object
    SUPPORT = 1         # Supporting part of a larger configuration
    INFRASTRUCTURE = 2  # Internal container machinery


@dataclass(frozen=True, slots=True)
class Ref:
    """Reference to another definition, resolved when arguments are built."""
    name: str


@dataclass
class Definition:
    """
    Recipe for one named object in the container.

    Factory extensions may edit any field (most commonly ``attributes``,
    ``kwargs`` or ``lazy``) before objects are created.
    """

    factory: Callable[..., Any]
    args: tuple = ()
    kwargs: Dict[str, Any] = field(default_factory=dict)
    scope: str = "singleton"
    role: Role = Role.APPLICATION
    lazy: bool = False
    target_type: Optional[type] = None
    init_method: Optional[str] = None
    destroy_method: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.scope not in _SCOPES:
            raise ValueError(
                f"Unknown scope {self.scope!r}; expected one of {sorted(_SCOPES)}"
            )

    @property
    def is_singleton(self) -> bool:
        return self.scope == "singleton"

    def predicted_type(self) -> Optional[type]:
        """
        Type the definition will produce, determined without calling the factory.

        Returns:
            ``target_type`` if set, the factory itself when it is a class,
            the factory's return annotation, or None when unknowable.
        """
        if self.target_type is not None:
            return self.target_type

        if isinstance(self.factory, type):
            return self.factory

        try:
            hints = get_type_hints(self.factory)
        except Exception:
            # Builtins and unresolvable forward references
            return None

        returned = hints.get("return")
        if isinstance(returned, type) and not isinstance(returned, GenericAlias):
            return returned
        return None

    def copy(self) -> "Definition":
        """Detached copy (containers are copied one level deep)."""
        return replace(
            self,
            kwargs=dict(self.kwargs),
            attributes=dict(self.attributes),
        )


@runtime_checkable
class DefinitionRegistry(Protocol):
    """
    Registry capability - add, replace and remove definitions.

    Only containers exposing this protocol run the registry extension tiers.
    """

    def register_definition(self, name: str, definition: Definition) -> None:
        ...

    def remove_definition(self, name: str) -> None:
        ...

    def get_definition(self, name: str) -> Definition:
        ...

    def contains_definition(self, name: str) -> bool:
        ...

    def definition_names(self) -> List[str]:
        ...


class ObjectFactory:
    """
    Listable object factory over a fixed set of definitions.

    Creates singletons on demand and passes every created object through the
    installed instance-extension chain. It has no registry capability; see
    :class:`Container` for the mutable variant.
    """

    def __init__(
        self,
        definitions: Optional[Dict[str, Definition]] = None,
        diagnostics: Optional[DIDiagnostics] = None,
    ):
        self._definitions: Dict[str, Definition] = dict(definitions or {})
        self._merged: Dict[str, Definition] = {}  # {name: cached snapshot}
        self._singletons: Dict[str, Any] = {}  # creation order
        self._manual_singletons: List[str] = []
        self._in_creation: List[str] = []
        self._instance_extensions: List[Any] = []
        self.dependency_comparator: Optional[Callable[[Any, Any], int]] = None
        self.diagnostics = diagnostics or DIDiagnostics()

    # ── Definition queries ──

    def contains_definition(self, name: str) -> bool:
        return name in self._definitions

    def get_definition(self, name: str) -> Definition:
        """
        Get the raw (mutable) definition registered under ``name``.

        Raises:
            DefinitionNotFoundError: If no such definition exists
        """
        definition = self._definitions.get(name)
        if definition is None:
            self._raise_not_found(name)
        return definition

    def definition_names(self) -> List[str]:
        return list(self._definitions)

    @property
    def definition_count(self) -> int:
        return len(self._definitions)

    def get_merged_definition(self, name: str) -> Definition:
        """Cached snapshot of a definition, used for object creation."""
        merged = self._merged.get(name)
        if merged is None:
            merged = self.get_definition(name).copy()
            self._merged[name] = merged
        return merged

    def clear_metadata_cache(self) -> None:
        """
        Drop cached definition snapshots for objects not created yet.

        Extensions may have rewritten raw definitions after they were cached.
        """
        stale = [name for name in self._merged if name not in self._singletons]
        for name in stale:
            del self._merged[name]

        self.diagnostics.emit(
            DIEventType.METADATA_CACHE_CLEARED,
            metadata={"dropped": len(stale), "kept": len(self._merged)},
        )

    def names_for_type(
        self,
        type_: type,
        include_non_singletons: bool = True,
        allow_eager_init: bool = False,
    ) -> List[str]:
        """
        List names whose object is (or will be) an instance of ``type_``.

        Args:
            type_: Class or runtime-checkable protocol to match
            include_non_singletons: Also match prototype definitions
            allow_eager_init: Create singletons whose type cannot be
                predicted in order to test them

        Returns:
            Definition names in registration order, then manually
            registered singleton names
        """
        result = []

        for name, definition in self._definitions.items():
            if not include_non_singletons and not definition.is_singleton:
                continue
            if self._matches(name, definition, type_, allow_eager_init):
                result.append(name)

        for name in self._manual_singletons:
            if name in self._definitions:
                continue
            instance = self._singletons.get(name, _MISSING)
            if instance is not _MISSING and isinstance(instance, type_):
                result.append(name)

        return result

    def is_type_match(self, name: str, type_: type) -> bool:
        """Check a name against a type without creating anything."""
        instance = self._singletons.get(name, _MISSING)
        if instance is not _MISSING:
            return isinstance(instance, type_)

        definition = self._definitions.get(name)
        if definition is None:
            return False

        predicted = definition.predicted_type()
        return predicted is not None and issubclass(predicted, type_)

    def _matches(
        self,
        name: str,
        definition: Definition,
        type_: type,
        allow_eager_init: bool,
    ) -> bool:
        instance = self._singletons.get(name, _MISSING)
        if instance is not _MISSING:
            return isinstance(instance, type_)

        predicted = definition.predicted_type()
        if predicted is not None:
            return issubclass(predicted, type_)

        if allow_eager_init and definition.is_singleton and not definition.lazy:
            return isinstance(self.get(name), type_)

        return False

    # ── Resolution ──

    def contains(self, name: str) -> bool:
        return name in self._definitions or name in self._singletons

    def get(self, name: str, required_type: Optional[Type[T]] = None) -> T:
        """
        Fetch-or-create the object registered under ``name``.

        Reentrant: creating one object may create others.

        Args:
            name: Definition or singleton name
            required_type: Optional type the object must be an instance of

        Raises:
            DefinitionNotFoundError: Unknown name
            CurrentlyInCreationError: Creation cycle
            BeanTypeError: Object is not a ``required_type``
        """
        instance = self._singletons.get(name, _MISSING)

        if instance is _MISSING:
            definition = self.get_merged_definition(name)
            instance = self._create(name, definition)
            if definition.is_singleton:
                self._singletons[name] = instance

        if required_type is not None and not isinstance(instance, required_type):
            raise BeanTypeError(name, required_type, type(instance))

        return instance

    def register_singleton(self, name: str, instance: Any) -> None:
        """Register an already-built object; it bypasses the extension chain."""
        if name in self._singletons:
            raise DefinitionOverrideError(name, self._singletons[name], instance)

        self._singletons[name] = instance
        if name not in self._definitions:
            self._manual_singletons.append(name)

    def is_created(self, name: str) -> bool:
        return name in self._singletons

    def preinstantiate_singletons(self) -> None:
        """Create every non-lazy singleton definition."""
        for name in list(self._definitions):
            definition = self.get_merged_definition(name)
            if definition.is_singleton and not definition.lazy:
                self.get(name)

    def destroy_singletons(self) -> None:
        """Destroy created singletons in reverse creation order."""
        for name in reversed(list(self._singletons)):
            instance = self._singletons[name]
            definition = self._merged.get(name) or self._definitions.get(name)
            if definition is None or not definition.destroy_method:
                continue
            try:
                getattr(instance, definition.destroy_method)()
            except Exception as e:
                # Continue destroying the remaining objects
                logger.warning(f"Destroy method of '{name}' failed: {e}")

        self._singletons.clear()
        self._manual_singletons.clear()
        self._merged.clear()

    def _create(self, name: str, definition: Definition) -> Any:
        if name in self._in_creation:
            raise CurrentlyInCreationError(name, list(self._in_creation))

        self._in_creation.append(name)
        try:
            args = [self._resolve_arg(arg) for arg in definition.args]
            kwargs = {
                key: self._resolve_arg(value)
                for key, value in definition.kwargs.items()
            }
            instance = definition.factory(*args, **kwargs)

            for extension in list(self._instance_extensions):
                if hasattr(extension, "on_merged_definition"):
                    extension.on_merged_definition(definition, type(instance), name)

            instance = self._initialize(name, instance, definition)
        finally:
            self._in_creation.pop()

        self.diagnostics.emit(
            DIEventType.INSTANTIATION,
            name=name,
            metadata={"type": type(instance).__qualname__, "scope": definition.scope},
        )
        return instance

    def _initialize(self, name: str, instance: Any, definition: Definition) -> Any:
        """
        Run the instance-extension chain around the init method.

        A hook returning None keeps the current object.
        """
        for extension in list(self._instance_extensions):
            result = extension.before_init(instance, name)
            if result is not None:
                instance = result

        if definition.init_method:
            getattr(instance, definition.init_method)()

        for extension in list(self._instance_extensions):
            result = extension.after_init(instance, name)
            if result is not None:
                instance = result

        return instance

    def _resolve_arg(self, value: Any) -> Any:
        if isinstance(value, Ref):
            return self.get(value.name)
        return value

    # ── Instance-extension chain ──

    def add_instance_extension(self, extension: Any) -> None:
        """
        Append an instance extension to the chain.

        An equal extension already in the chain is removed first, so
        re-adding moves it to the end.
        """
        if extension in self._instance_extensions:
            self._instance_extensions.remove(extension)
        self._instance_extensions.append(extension)

    def add_instance_extensions(self, extensions: List[Any]) -> None:
        """Bulk variant of :meth:`add_instance_extension`."""
        for extension in extensions:
            if extension in self._instance_extensions:
                self._instance_extensions.remove(extension)
        self._instance_extensions.extend(extensions)

    @property
    def instance_extension_count(self) -> int:
        return len(self._instance_extensions)

    @property
    def instance_extensions(self) -> tuple:
        return tuple(self._instance_extensions)

    def _raise_not_found(self, name: str) -> None:
        """Raise DefinitionNotFoundError with similar names."""
        lowered = name.lower()
        candidates = [
            key for key in list(self._definitions) + self._manual_singletons
            if lowered in key.lower() or key.lower() in lowered
        ]
        raise DefinitionNotFoundError(name, candidates=candidates)


class Container(ObjectFactory):
    """
    Registry-capable container.

    Registry extensions receive it to add, replace or remove definitions
    before any regular object is created.
    """

    def __init__(
        self,
        definitions: Optional[Dict[str, Definition]] = None,
        diagnostics: Optional[DIDiagnostics] = None,
        *,
        allow_definition_overriding: bool = True,
    ):
        super().__init__(diagnostics=diagnostics)
        self.allow_definition_overriding = allow_definition_overriding
        for name, definition in (definitions or {}).items():
            self.register_definition(name, definition)

    def register_definition(self, name: str, definition: Definition) -> None:
        """
        Register (or replace) a definition.

        Raises:
            DefinitionOverrideError: Name taken and overriding disabled
        """
        existing = self._definitions.get(name)
        if existing is not None:
            if not self.allow_definition_overriding:
                raise DefinitionOverrideError(name, existing, definition)
            logger.debug(f"Overriding definition '{name}'")
            self._reset_definition(name)
        elif name in self._manual_singletons:
            logger.debug(f"Definition '{name}' replaces a registered singleton")
            self._reset_definition(name)

        self._definitions[name] = definition

        self.diagnostics.emit(
            DIEventType.REGISTRATION,
            name=name,
            metadata={"scope": definition.scope, "role": definition.role.name},
        )

    def register(
        self,
        name: str,
        factory: Callable[..., Any],
        *args,
        **options,
    ) -> Definition:
        """
        Shorthand for building and registering a :class:`Definition`.

        Example:
            container.register("repo", SqlRepo, Ref("db"), lazy=True)
        """
        definition = Definition(factory=factory, args=args, **options)
        self.register_definition(name, definition)
        return definition

    def remove_definition(self, name: str) -> None:
        """
        Remove a definition.

        Raises:
            DefinitionNotFoundError: If no such definition exists
        """
        if name not in self._definitions:
            self._raise_not_found(name)

        del self._definitions[name]
        self._reset_definition(name)

    def _reset_definition(self, name: str) -> None:
        """Forget cached state derived from a definition that changed."""
        self._merged.pop(name, None)
        self._singletons.pop(name, None)
        if name in self._manual_singletons:
            self._manual_singletons.remove(name)

        for extension in list(self._instance_extensions):
            if hasattr(extension, "reset_definition"):
                extension.reset_definition(name)
