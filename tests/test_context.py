"""
ApplicationContext: refresh sequence, events, lifecycle phases, config.
"""

import pytest

from strix.config import BootstrapConfig
from strix.context import (
    ApplicationContext,
    ContextClosedEvent,
    ContextPhase,
    ContextRefreshedEvent,
)
from strix.di.core import Container, Ref
from strix.di.diagnostics import ConsoleDiagnosticListener, DIEventType
from strix.di.errors import (
    ContextStateError,
    DefinitionOverrideError,
    ReiterationLimitError,
)
from strix.extensions.capabilities import InstanceExtension, RegistryExtension
from strix.extensions.checker import EligibilityChecker
from strix.extensions.listeners import ListenerDetector
from strix.testing import (
    RecordingDiagnostics,
    RecordingFactoryExtension,
    RecordingRegistryExtension,
)

from tests.conftest import PriorityRegistry, Service


class Listener:
    def __init__(self):
        self.events = []

    def on_application_event(self, event):
        self.events.append(event)


class Uppercase(InstanceExtension):
    def after_init(self, bean, name):
        if isinstance(bean, str):
            return bean.upper()
        return bean


class Scanner(RegistryExtension):
    """Registers a service the way component scanning would."""

    def process_registry(self, registry):
        registry.register("svc", Service)


class Exploding(RegistryExtension):
    def process_registry(self, registry):
        raise RuntimeError("scan failed")


class Resource:
    closed = False

    def close(self):
        self.closed = True


# ============================================================================
# Refresh
# ============================================================================

class TestRefresh:

    def test_full_bootstrap(self, strix_context):
        container = strix_context.container
        container.register("scanner", Scanner)
        container.register("up", Uppercase)
        container.register("greeting", lambda: "hello")

        strix_context.refresh()

        assert strix_context.phase is ContextPhase.ACTIVE
        assert strix_context.is_active
        assert isinstance(strix_context.get("svc"), Service)
        assert strix_context.get("greeting") == "HELLO"

    def test_chain_is_k_plus_two(self, strix_context):
        strix_context.container.register("up", Uppercase)

        strix_context.refresh()

        chain = strix_context.container.instance_extensions
        assert len(chain) == 3
        assert isinstance(chain[0], EligibilityChecker)
        assert isinstance(chain[-1], ListenerDetector)

    def test_supplied_extensions_first(self, strix_context, journal):
        strix_context.container.register("p", PriorityRegistry, journal, "P")
        strix_context.add_factory_extension(RecordingRegistryExtension(journal, "S"))
        strix_context.add_factory_extension(RecordingFactoryExtension(journal, "F"))

        strix_context.refresh()

        assert journal.labels("registry") == ["S", "P"]
        assert journal.labels("factory") == ["S", "P", "F"]
        assert len(strix_context.factory_extensions) == 2

    def test_singletons_preinstantiated(self, strix_context):
        strix_context.container.register("svc", Service)
        strix_context.container.register("lazy", Service, lazy=True)

        strix_context.refresh()

        assert strix_context.container.is_created("svc")
        assert not strix_context.container.is_created("lazy")

    def test_refresh_twice(self, strix_context):
        strix_context.refresh()
        with pytest.raises(ContextStateError):
            strix_context.refresh()

    def test_get_before_refresh(self, strix_context):
        strix_context.container.register("svc", Service)
        with pytest.raises(ContextStateError):
            strix_context.get("svc")

    def test_failure(self, strix_context):
        strix_context.container.register("boom", Exploding)

        with pytest.raises(RuntimeError, match="scan failed"):
            strix_context.refresh()

        assert strix_context.phase is ContextPhase.FAILED
        with pytest.raises(ContextStateError):
            strix_context.refresh()

    def test_refreshed_event(self, strix_context, recorder):
        strix_context.refresh()
        assert len(recorder.of_type(DIEventType.CONTEXT_REFRESHED)) == 1


# ============================================================================
# Listeners
# ============================================================================

class TestListeners:

    def test_singleton_listener_receives_refresh(self, strix_context):
        strix_context.container.register("listener", Listener)

        strix_context.refresh()

        listener = strix_context.get("listener")
        assert listener in strix_context.listeners
        assert len(listener.events) == 1
        assert isinstance(listener.events[0], ContextRefreshedEvent)
        assert listener.events[0].source is strix_context

    def test_manual_listener(self, strix_context):
        listener = Listener()
        strix_context.add_listener(listener)
        strix_context.add_listener(listener)

        strix_context.refresh()
        strix_context.close()

        assert [type(e) for e in listener.events] == [
            ContextRefreshedEvent,
            ContextClosedEvent,
        ]

    def test_remove_listener(self, strix_context):
        listener = Listener()
        strix_context.add_listener(listener)
        strix_context.remove_listener(listener)
        strix_context.remove_listener(listener)

        strix_context.refresh()

        assert listener.events == []

    def test_publish_event(self, strix_context):
        listener = Listener()
        strix_context.add_listener(listener)

        strix_context.publish_event("custom")

        assert listener.events == ["custom"]


# ============================================================================
# Close
# ============================================================================

class TestClose:

    def test_close_destroys_singletons(self, strix_context):
        strix_context.container.register("res", Resource, destroy_method="close")
        strix_context.refresh()
        resource = strix_context.get("res")

        strix_context.close()

        assert resource.closed
        assert strix_context.phase is ContextPhase.CLOSED
        assert not strix_context.container.is_created("res")

    def test_close_idempotent(self, strix_context, recorder):
        strix_context.refresh()
        strix_context.close()
        strix_context.close()

        assert len(recorder.of_type(DIEventType.CONTEXT_CLOSED)) == 1

    def test_close_after_failure_skips_event(self, strix_context):
        listener = Listener()
        strix_context.add_listener(listener)
        strix_context.container.register("boom", Exploding)

        with pytest.raises(RuntimeError):
            strix_context.refresh()
        strix_context.close()

        assert listener.events == []
        assert strix_context.phase is ContextPhase.CLOSED

    def test_context_manager(self):
        container = Container()
        container.register("res", Resource, destroy_method="close")

        with ApplicationContext(container) as context:
            assert context.is_active
            resource = context.get("res")

        assert resource.closed
        assert context.phase is ContextPhase.CLOSED


# ============================================================================
# Config
# ============================================================================

class TestConfig:

    def test_no_preinstantiation(self):
        container = Container()
        container.register("svc", Service)
        context = ApplicationContext(
            container, config=BootstrapConfig(preinstantiate_singletons=False)
        )

        context.refresh()

        assert not container.is_created("svc")
        assert isinstance(context.get("svc"), Service)

    def test_reiteration_bound(self, journal):
        def spawn(registry):
            n = len(registry.definition_names())
            registry.register(f"gen{n}", RecordingRegistryExtension, journal, f"G{n}", spawn)

        context = ApplicationContext(config=BootstrapConfig(max_reiteration_rounds=2))
        context.container.register("seed", RecordingRegistryExtension, journal, "SEED", spawn)

        with pytest.raises(ReiterationLimitError):
            context.refresh()
        assert context.phase is ContextPhase.FAILED

    def test_definition_overriding(self):
        context = ApplicationContext(
            config=BootstrapConfig(allow_definition_overriding=False)
        )
        context.container.register("svc", Service)
        with pytest.raises(DefinitionOverrideError):
            context.container.register("svc", Service)

    def test_ineligible_reporting_disabled(self):
        class NeedsDep(InstanceExtension):
            def __init__(self, dep):
                self.dep = dep

        context = ApplicationContext(
            config=BootstrapConfig(report_ineligible_beans=False)
        )
        recorder = RecordingDiagnostics(context.diagnostics)
        context.container.register("dep", Service)
        context.container.register("needy", NeedsDep, Ref("dep"))

        context.refresh()

        assert recorder.of_type(DIEventType.INELIGIBLE_BEAN) == []

    def test_console_diagnostics(self):
        context = ApplicationContext(config=BootstrapConfig(console_diagnostics=True))
        assert any(
            isinstance(listener, ConsoleDiagnosticListener)
            for listener in context.diagnostics._listeners
        )

    def test_shared_diagnostics(self):
        container = Container()
        context = ApplicationContext(container)
        assert context.diagnostics is container.diagnostics
