"""
Shared test fixtures and helpers for the Strix test suite.
"""

import pytest

from strix.extensions.capabilities import (
    MergedDefinitionExtension,
    Ordered,
    PriorityOrdered,
)
from strix.testing import (
    RecordingFactoryExtension,
    RecordingInstanceExtension,
    RecordingRegistryExtension,
)

# Import fixtures so pytest can discover them
from strix.testing import (  # noqa: F401
    journal,
    strix_container,
    recorder,
    strix_context,
)


# ============================================================================
# Tiered recording extensions
# ============================================================================


class PriorityRegistry(RecordingRegistryExtension, PriorityOrdered):
    def __init__(self, journal, label, order=0, on_registry=None):
        super().__init__(journal, label, on_registry)
        self.order = order


class OrderedRegistry(RecordingRegistryExtension, Ordered):
    def __init__(self, journal, label, order=0, on_registry=None):
        super().__init__(journal, label, on_registry)
        self.order = order


class PriorityFactory(RecordingFactoryExtension, PriorityOrdered):
    def __init__(self, journal, label, order=0):
        super().__init__(journal, label)
        self.order = order


class OrderedFactory(RecordingFactoryExtension, Ordered):
    def __init__(self, journal, label, order=0):
        super().__init__(journal, label)
        self.order = order


class PriorityInstance(RecordingInstanceExtension, PriorityOrdered):
    def __init__(self, journal, label, order=0):
        super().__init__(journal, label)
        self.order = order


class OrderedInstance(RecordingInstanceExtension, Ordered):
    def __init__(self, journal, label, order=0):
        super().__init__(journal, label)
        self.order = order


class InternalInstance(RecordingInstanceExtension, MergedDefinitionExtension):
    """Merged-definition extension; records the definitions it sees."""

    def __init__(self, journal, label):
        super().__init__(journal, label)
        self.seen = []

    def on_merged_definition(self, definition, bean_type, name):
        self.seen.append(name)


class PriorityInternalInstance(InternalInstance, PriorityOrdered):
    pass


class Service:
    """Plain application object."""

    def __init__(self, *deps):
        self.deps = deps


def labels(extensions):
    """Labels of recording extensions, in order."""
    return [getattr(e, "label", type(e).__name__) for e in extensions]


@pytest.fixture
def container(strix_container):
    """Registry-capable container shared with the ``recorder`` fixture."""
    return strix_container
