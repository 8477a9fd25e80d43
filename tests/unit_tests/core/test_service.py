from unittest import mock

from lobby.core import Service, create_services
from lobby.core.service import snake_case


def test_service_registry():
    with mock.patch("lobby.core.service.service_registry", {}) as registry:
        class UndoHistory(Service):
            pass

        assert registry["undo_history"] is UndoHistory
        assert registry == {"undo_history": UndoHistory}


def test_service_registry_name_override():
    with mock.patch("lobby.core.service.service_registry", {}) as registry:
        class Foo(Service, name="ledger"):
            pass

        assert registry == {"ledger": Foo}


def test_snake_case():
    assert snake_case("SessionRegistry") == "session_registry"
    assert snake_case("LobbyService") == "lobby_service"


def test_create_services():
    with mock.patch("lobby.core.service.service_registry", {}):
        class Ledger(Service):
            def __init__(self):
                pass

        class Lobbies(Service):
            def __init__(self, ledger, renderer):
                self.ledger = ledger
                self.renderer = renderer

        renderer = object()
        services = create_services({"renderer": renderer})

    assert set(services) == {"ledger", "lobbies"}
    assert services["lobbies"].ledger is services["ledger"]
    assert services["lobbies"].renderer is renderer
