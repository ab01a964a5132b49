"""
Extension kinds and ordering capabilities.

Three extension kinds hook into bootstrap:

- :class:`RegistryExtension` - may add/replace/remove definitions before
  anything is created; may register further registry extensions.
- :class:`FactoryExtension` - inspects and edits finalized definitions.
- :class:`InstanceExtension` - wraps the creation of every object.

Ordering is declared by subclassing :class:`PriorityOrdered` or
:class:`Ordered`, or with the :func:`order` decorator. Anything else is
unordered.
"""

from __future__ import annotations

import abc
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

HIGHEST_PRECEDENCE: int = -(2**31)
LOWEST_PRECEDENCE: int = 2**31 - 1

C = TypeVar("C", bound=type)


class Ordered(abc.ABC):
    """
    Marker for objects with an explicit numeric order.

    Lower value = higher precedence. Classes decorated with :func:`order`
    count as Ordered without subclassing.
    """

    order: int = LOWEST_PRECEDENCE

    def get_order(self) -> int:
        return getattr(self, "__strix_order__", self.order)

    @classmethod
    def __subclasshook__(cls, subclass):
        if cls is Ordered:
            if any("__strix_order__" in klass.__dict__ for klass in subclass.__mro__):
                return True
        return NotImplemented


class PriorityOrdered(Ordered):
    """Ordered marker whose instances always precede plain Ordered ones."""


def order(value: int) -> Callable[[C], C]:
    """
    Set the order value for a class, making it Ordered.

    Example:
        @order(10)
        class AuditExtension(FactoryExtension):
            ...
    """

    def decorator(cls: C) -> C:
        cls.__strix_order__ = value  # type: ignore[attr-defined]
        return cls

    return decorator


def get_order(obj: Any) -> Optional[int]:
    """Declared order of an object, or None when it declares none."""
    if isinstance(obj, Ordered):
        getter = getattr(obj, "get_order", None)
        if getter is not None:
            return getter()
    return getattr(obj, "__strix_order__", None)


class Capability(Enum):
    """Ordering tier of an extension; lower rank runs first."""

    PRIORITY = 0
    ORDERED = 1
    UNORDERED = 2

    @property
    def rank(self) -> int:
        return self.value

    @classmethod
    def of(cls, obj: Any) -> "Capability":
        """Tier of an instance."""
        if isinstance(obj, PriorityOrdered):
            return cls.PRIORITY
        if isinstance(obj, Ordered):
            return cls.ORDERED
        return cls.UNORDERED

    @classmethod
    def query(cls, factory: Any, name: str) -> "Capability":
        """Tier of a named definition, asked of the factory without creating it."""
        if factory.is_type_match(name, PriorityOrdered):
            return cls.PRIORITY
        if factory.is_type_match(name, Ordered):
            return cls.ORDERED
        return cls.UNORDERED


class FactoryExtension(abc.ABC):
    """Invoked once after registry mutation is complete."""

    @abc.abstractmethod
    def process_factory(self, factory: Any) -> None:
        """
        Inspect or edit the finalized definitions.

        Args:
            factory: The object factory; definitions may be edited but no
                new ones registered
        """


class RegistryExtension(FactoryExtension):
    """Invoked before factory extensions, with the mutable registry."""

    @abc.abstractmethod
    def process_registry(self, registry: Any) -> None:
        """
        Add, replace or remove definitions.

        Args:
            registry: The container's definition registry
        """

    def process_factory(self, factory: Any) -> None:
        pass


class InstanceExtension(abc.ABC):
    """
    Hook around the initialization of every created object.

    Both hooks may return a replacement object; returning None keeps the
    current one.
    """

    def before_init(self, bean: Any, name: str) -> Any:
        return bean

    def after_init(self, bean: Any, name: str) -> Any:
        return bean


class MergedDefinitionExtension(InstanceExtension):
    """
    Instance extension that also sees the definition snapshot of every object.

    Used for container-internal lifecycle work; installed after all regular
    instance extensions.
    """

    @abc.abstractmethod
    def on_merged_definition(self, definition: Any, bean_type: type, name: str) -> None:
        ...

    def reset_definition(self, name: str) -> None:
        pass


@dataclass(slots=True)
class ExtensionDescriptor:
    """A discovered extension name, its tier, and (once resolved) its instance."""

    name: str
    capability: Capability
    instance: Any = None

    @classmethod
    def discover(cls, factory: Any, name: str) -> "ExtensionDescriptor":
        return cls(name=name, capability=Capability.query(factory, name))

    def resolve(self, factory: Any, required_type: Optional[type] = None) -> Any:
        if self.instance is None:
            self.instance = factory.get(self.name, required_type)
        return self.instance


def describe(extension: Any) -> str:
    """Short label for an extension in logs and diagnostics."""
    return type(extension).__qualname__
