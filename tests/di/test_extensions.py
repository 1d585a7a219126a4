"""
Tests for scanning handlers into a container.
"""
import pytest

from config import Config, ScanningConfig
from core.errors import ConfigError, RegistrationError, ScanError
from di.extensions import (
    COLLECTOR_CONTRACTS,
    HANDLER_CONTRACTS,
    add_mediator,
    add_mediator_classes,
    create_container,
    mediator_templates,
)
from domain.contracts import (
    IAsyncNotificationHandler,
    IAsyncRequestHandler,
    IAsyncVoidRequestHandler,
    ICancellableAsyncRequestHandler,
    INotificationHandler,
    IRequestHandler,
    IRequestPostProcessor,
    IRequestPreProcessor,
)
from domain.mediator import IMediator, Mediator, MultiInstanceFactory, SingleInstanceFactory
from scanning.reflection import TypeCatalog
from tests.fixtures.handlers import notifications, requests
from tests.fixtures.handlers.audit.events import (
    AuditedNotificationHandler,
    UserAudited,
    UserAuditedHandler,
)
from tests.fixtures.handlers.messages import (
    AsyncPing,
    CancellablePing,
    Echo,
    Jing,
    Ping,
    Pinged,
    PingedAsync,
    Pong,
)
from tests.fixtures.handlers.processors import (
    AsyncPingPreProcessor,
    GenericPreProcessor,
    PingPostProcessor,
    PingPreProcessor,
)
from tests.fixtures.mixins import LoggedPingHandler, PingHandlerBase


@pytest.fixture
def scanned(container, fixture_package):
    add_mediator(container, fixture_package)
    return container


def implementations(container, key):
    return {d.implementation_type for d in container.registrations(key)}


# =============================================================================
# REQUIRED SERVICES
# =============================================================================

class TestRequiredServices:
    """The mediator and its instance factories."""

    def test_mediator_resolves_in_scope(self, scanned):
        with scanned.create_scope() as scope:
            mediator = scope.resolve(IMediator)
            assert isinstance(mediator, Mediator)
            assert scope.resolve(IMediator) is mediator

    def test_factories_are_bound_to_the_scope(self, scanned):
        with scanned.create_scope() as scope:
            single = scope.resolve(SingleInstanceFactory)
            multi = scope.resolve(MultiInstanceFactory)

            assert isinstance(single(IRequestHandler[Ping, Pong]), requests.PingHandler)
            assert single(IRequestHandler[Pong, Ping]) is None
            assert len(multi(INotificationHandler[Pinged])) == 3
            assert multi(INotificationHandler[Pong]) == []

    def test_required_services_are_added_once(self, container, fixture_package):
        add_mediator(container, fixture_package)
        add_mediator(container, requests)

        assert len(container.registrations(IMediator)) == 1
        assert len(container.registrations(SingleInstanceFactory)) == 1


# =============================================================================
# HANDLER BINDINGS
# =============================================================================

class TestHandlerBindings:
    """Handlers bound under their closed contracts."""

    def test_request_handlers(self, scanned):
        assert implementations(scanned, IRequestHandler[Ping, Pong]) == {requests.PingHandler}
        assert implementations(scanned, IAsyncRequestHandler[AsyncPing, Pong]) == {
            requests.AsyncPingHandler
        }
        assert implementations(scanned, ICancellableAsyncRequestHandler[CancellablePing, Pong]) == {
            requests.CancellablePingHandler
        }

    def test_contract_inherited_from_abstract_base(self, scanned):
        assert implementations(scanned, IAsyncVoidRequestHandler[Jing]) == {requests.JingHandler}

    def test_contract_through_generic_base(self, scanned):
        assert implementations(scanned, IRequestHandler[Echo, str]) == {requests.EchoHandler}

    def test_open_base_is_not_bound(self, scanned):
        for key in (IRequestHandler[Ping, Pong], IRequestHandler[Echo, str]):
            assert requests.RequestHandlerBase not in implementations(scanned, key)

    def test_notification_handlers_include_closed_generic(self, scanned):
        assert implementations(scanned, INotificationHandler[Pinged]) == {
            notifications.PingedHandler,
            notifications.PingedAlsoHandler,
            notifications.LoggingNotificationHandler[Pinged],
        }

    def test_bound_decides_which_generics_close(self, scanned):
        assert implementations(scanned, INotificationHandler[UserAudited]) == {
            UserAuditedHandler,
            notifications.LoggingNotificationHandler[UserAudited],
            AuditedNotificationHandler[UserAudited],
        }

    def test_async_notification_handlers(self, scanned):
        assert implementations(scanned, IAsyncNotificationHandler[PingedAsync]) == {
            notifications.PingedAsyncHandler,
            notifications.PingedAsyncAlsoHandler,
            notifications.AsyncLoggingNotificationHandler[PingedAsync],
        }

    def test_handlers_are_transient(self, scanned):
        first = scanned.resolve(IRequestHandler[Ping, Pong])
        assert scanned.resolve(IRequestHandler[Ping, Pong]) is not first

    def test_closed_generic_handler_resolves(self, scanned):
        handlers = scanned.resolve_all(INotificationHandler[Pinged])
        assert sum(isinstance(h, notifications.LoggingNotificationHandler) for h in handlers) == 1

    def test_private_handlers_when_enabled(self, container, fixture_package):
        config = Config(scanning=ScanningConfig(modules=[fixture_package], include_private=True))

        add_mediator(container, config=config)

        assert len(container.registrations(INotificationHandler[Pinged])) == 4


# =============================================================================
# PROCESSORS
# =============================================================================

class TestProcessors:
    """Processors collected under the bare contracts."""

    def test_pre_processors(self, scanned):
        assert implementations(scanned, IRequestPreProcessor) == {
            PingPreProcessor,
            AsyncPingPreProcessor,
            GenericPreProcessor,
        }

    def test_post_processors(self, scanned):
        assert implementations(scanned, IRequestPostProcessor) == {PingPostProcessor}

    def test_processors_resolve(self, scanned):
        assert len(scanned.resolve_all(IRequestPreProcessor)) == 3


# =============================================================================
# CONFIGURATION AND ERRORS
# =============================================================================

class TestConfiguration:
    """Scan targets from configuration and failure modes."""

    def test_configured_modules_are_scanned(self, container, scan_config):
        bindings = add_mediator(container, config=scan_config)

        assert bindings
        assert container.is_registered(IRequestHandler[Ping, Pong])

    def test_configured_modules_from_environment(self, container, fixture_package, monkeypatch):
        monkeypatch.setenv("MEDIATOR_SCAN_MODULES", fixture_package)

        add_mediator(container)

        assert container.is_registered(IRequestHandler[Ping, Pong])

    def test_no_targets_raises(self, container):
        with pytest.raises(ConfigError) as exc_info:
            add_mediator(container, config=Config(scanning=ScanningConfig(modules=[])))
        assert exc_info.value.config_key == "MEDIATOR_SCAN_MODULES"

    def test_explicit_targets_override_configuration(self, container, scan_config):
        add_mediator(container, requests, config=scan_config)

        assert container.is_registered(IRequestHandler[Ping, Pong])
        assert not container.is_registered(INotificationHandler[Pinged])

    def test_missing_module_raises(self, container):
        with pytest.raises(ScanError):
            add_mediator(container, "tests.fixtures.no_such_module")

    def test_rejected_duplicates(self, fixture_package):
        config = Config(
            scanning=ScanningConfig(modules=[fixture_package], reject_duplicates=True)
        )
        container = create_container(config)
        add_mediator(container, config=config)

        with pytest.raises(RegistrationError):
            add_mediator(container, config=config)

    def test_create_container_reads_policy(self, monkeypatch):
        monkeypatch.setenv("MEDIATOR_REJECT_DUPLICATES", "true")
        assert create_container().reject_duplicates


class TestTemplates:
    """The handler and collector contract templates."""

    def test_templates_cover_every_contract(self):
        handlers, collectors = mediator_templates(TypeCatalog())

        assert len(handlers) == len(HANDLER_CONTRACTS) == 9
        assert [t.identity.name for t in collectors] == [c.__name__ for c in COLLECTOR_CONTRACTS]

    def test_add_mediator_classes_with_prepared_candidates(self, container):
        catalog = TypeCatalog()
        candidates = catalog.describe_all([requests.PingHandler, requests.AsyncPingHandler])

        bindings = add_mediator_classes(container, catalog, candidates)

        assert len(bindings) == 2
        assert not container.is_registered(IMediator)

    def test_handler_behind_a_mixin_is_registered(self, container):
        catalog = TypeCatalog()
        candidates = catalog.describe_all([PingHandlerBase, LoggedPingHandler])

        bindings = add_mediator_classes(container, catalog, candidates)

        assert len(bindings) == 1
        assert [type(h) for h in container.resolve_all(IRequestHandler[Ping, Pong])] == [
            LoggedPingHandler
        ]
