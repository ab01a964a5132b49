"""
Factory phase: tiered invocation of container-defined factory extensions,
and the combined entry point.
"""

import pytest

from strix.di.core import Container, Definition, ObjectFactory
from strix.di.diagnostics import DIEventType
from strix.di.errors import ReiterationLimitError
from strix.extensions.capabilities import FactoryExtension
from strix.extensions.delegate import invoke_factory_extensions
from strix.extensions.factory_phase import FactoryPhaseOrchestrator
from strix.extensions.processed import ProcessedSet
from strix.testing import RecordingFactoryExtension, RecordingRegistryExtension

from tests.conftest import (
    OrderedFactory,
    OrderedRegistry,
    PriorityFactory,
    PriorityRegistry,
)


class Greeter:
    def __init__(self, greeting="hello"):
        self.greeting = greeting


class CreationProbe(PriorityFactory):
    """Records which of ``names`` already exist when it runs."""

    names = ("o", "u")

    def process_factory(self, factory):
        super().process_factory(factory)
        self.created = [n for n in self.names if factory.is_created(n)]


class Rewriter(FactoryExtension):
    """Reads a snapshot, then rewrites the raw definition."""

    def process_factory(self, factory):
        assert factory.get_merged_definition("greeter").kwargs == {}
        factory.get_definition("greeter").kwargs["greeting"] = "bonjour"


# ============================================================================
# FactoryPhaseOrchestrator
# ============================================================================

class TestFactoryPhase:

    def test_tier_order(self, container, journal):
        container.register("u1", RecordingFactoryExtension, journal, "U1")
        container.register("o3", OrderedFactory, journal, "O3", 3)
        container.register("p2", PriorityFactory, journal, "P2", 2)
        container.register("u2", RecordingFactoryExtension, journal, "U2")
        container.register("o1", OrderedFactory, journal, "O1", 1)
        container.register("p1", PriorityFactory, journal, "P1", 1)

        FactoryPhaseOrchestrator(container, ProcessedSet()).run()

        assert journal.labels("factory") == ["P1", "P2", "O1", "O3", "U1", "U2"]

    def test_lower_tiers_created_after_priority_runs(self, container, journal):
        container.register("o", OrderedFactory, journal, "O")
        container.register("u", RecordingFactoryExtension, journal, "U")
        container.register("probe", CreationProbe, journal, "PROBE")

        FactoryPhaseOrchestrator(container, ProcessedSet()).run()

        probe = container.get("probe")
        assert probe.created == []
        assert container.is_created("o")
        assert container.is_created("u")

    def test_skips_processed_names(self, container, journal):
        container.register("p", PriorityFactory, journal, "P")
        container.register("u", RecordingFactoryExtension, journal, "U")

        processed = ProcessedSet()
        processed.add("p")
        FactoryPhaseOrchestrator(container, processed).run()

        assert journal.labels("factory") == ["U"]
        assert not container.is_created("p")
        assert processed.names() == ["p", "u"]

    def test_name_listed_twice_invoked_once(self, journal):
        class RepeatingContainer(Container):
            def names_for_type(self, type_, include_non_singletons=True, allow_eager_init=False):
                names = super().names_for_type(type_, include_non_singletons, allow_eager_init)
                return names + names

        container = RepeatingContainer()
        container.register("p", PriorityFactory, journal, "P")
        container.register("o", OrderedFactory, journal, "O")
        container.register("u", RecordingFactoryExtension, journal, "U")

        processed = ProcessedSet()
        FactoryPhaseOrchestrator(container, processed).run()

        assert journal.labels("factory") == ["P", "O", "U"]
        assert processed.names() == ["p", "o", "u"]

    def test_failure_propagates(self, container, journal, recorder):
        class Broken(FactoryExtension):
            def process_factory(self, factory):
                raise ValueError("broken")

        container.register("p", PriorityFactory, journal, "P")
        container.register("broken", Broken)
        container.register("u", RecordingFactoryExtension, journal, "U")

        with pytest.raises(ValueError, match="broken"):
            FactoryPhaseOrchestrator(container, ProcessedSet()).run()

        assert journal.labels("factory") == ["P"]
        assert len(recorder.of_type(DIEventType.EXTENSION_FAILED)) == 1

    def test_works_on_object_factory(self, journal):
        factory = ObjectFactory({
            "o": Definition(OrderedFactory, args=(journal, "O")),
            "p": Definition(PriorityFactory, args=(journal, "P")),
        })

        FactoryPhaseOrchestrator(factory, ProcessedSet()).run()

        assert journal.labels("factory") == ["P", "O"]


# ============================================================================
# invoke_factory_extensions
# ============================================================================

class TestInvokeFactoryExtensions:

    def test_registry_extensions_not_invoked_twice(self, container, journal):
        container.register("rp", PriorityRegistry, journal, "RP")
        container.register("ro", OrderedRegistry, journal, "RO")
        container.register("fp", PriorityFactory, journal, "FP")
        container.register("fu", RecordingFactoryExtension, journal, "FU")

        invoke_factory_extensions(container)

        assert journal.entries == [
            ("RP", "registry"),
            ("RO", "registry"),
            ("RP", "factory"),
            ("RO", "factory"),
            ("FP", "factory"),
            ("FU", "factory"),
        ]

    def test_definition_over_manual_singleton_invoked_once(self, container, journal):
        container.register_singleton("f", RecordingFactoryExtension(journal, "F"))
        container.register("f", RecordingFactoryExtension, journal, "F2")

        invoke_factory_extensions(container)

        assert journal.labels("factory") == ["F2"]

    def test_removed_definition_after_manual_singleton(self, container, journal):
        container.register_singleton("f", RecordingFactoryExtension(journal, "F"))
        container.register("f", RecordingFactoryExtension, journal, "F2")
        container.remove_definition("f")

        invoke_factory_extensions(container)

        assert journal.labels("factory") == []

    def test_factory_extension_registered_during_registry_phase(self, container, journal):
        container.register(
            "r", RecordingRegistryExtension, journal, "R",
            lambda registry: registry.register("f", RecordingFactoryExtension, journal, "F"),
        )

        invoke_factory_extensions(container)

        assert journal.labels("factory") == ["R", "F"]

    def test_supplied_extensions(self, container, journal):
        container.register("fp", PriorityFactory, journal, "FP")

        invoke_factory_extensions(
            container,
            [RecordingFactoryExtension(journal, "S")],
        )

        assert journal.labels("factory") == ["S", "FP"]

    def test_minimal_mode_runs_registry_definitions_as_factory_extensions(self, journal):
        factory = ObjectFactory({
            "r": Definition(RecordingRegistryExtension, args=(journal, "R")),
        })

        invoke_factory_extensions(factory, [RecordingRegistryExtension(journal, "S")])

        assert journal.entries == [("S", "factory"), ("R", "factory")]

    def test_metadata_cache_cleared_once_at_end(self, container, journal, recorder):
        container.register("greeter", Greeter)
        container.register("rewriter", Rewriter)

        invoke_factory_extensions(container)

        cleared = recorder.of_type(DIEventType.METADATA_CACHE_CLEARED)
        assert len(cleared) == 1
        assert recorder.events[-1].type is DIEventType.METADATA_CACHE_CLEARED
        assert container.get("greeter").greeting == "bonjour"

    def test_max_reiteration_rounds_forwarded(self, container, journal):
        def spawn(registry):
            n = len(registry.definition_names())
            registry.register(f"gen{n}", RecordingRegistryExtension, journal, f"G{n}", spawn)

        container.register("seed", RecordingRegistryExtension, journal, "SEED", spawn)

        with pytest.raises(ReiterationLimitError):
            invoke_factory_extensions(container, max_reiteration_rounds=5)

    def test_phase_events(self, container, recorder):
        invoke_factory_extensions(container)

        assert [e.phase for e in recorder.of_type(DIEventType.PHASE_START)] == [
            "registry", "factory",
        ]
