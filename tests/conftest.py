"""
This module is the 'top level' configuration for all the unit tests.

'Real world' fixtures are put here.
If a test suite needs specific mocked versions of dependencies,
these should be put in the ``conftest.py'' relative to it.
"""

import logging
from unittest import mock

import hypothesis
import pytest

from lobby.abc import Renderer
from lobby.abc.authority import StaticAuthority
from lobby.config import TRACE
from lobby.history_ledger import HistoryLedger
from lobby.lobby_service import LobbyService
from lobby.player_service import PlayerService
from lobby.players import Participant
from lobby.rating_service import RatingService
from lobby.session_registry import SessionRegistry
from tests.utils import InMemoryPlayerStore

logging.getLogger().setLevel(TRACE)
hypothesis.settings.register_profile(
    "nightly",
    max_examples=10_000,
    deadline=None,
    print_blob=True
)

ADMIN = "admin"


def make_participant(identity, rating=1500, display_name=None, **kwargs):
    return Participant(
        identity,
        display_name or f"Player {identity}",
        rating=rating,
        **kwargs
    )


@pytest.fixture(scope="session")
def participant_factory():
    return make_participant


@pytest.fixture
def player_store():
    return InMemoryPlayerStore()


@pytest.fixture
def authority():
    return StaticAuthority([ADMIN])


@pytest.fixture
def renderer():
    return mock.AsyncMock(spec=Renderer)


@pytest.fixture
async def session_registry():
    registry = SessionRegistry()
    await registry.initialize()
    yield registry
    await registry.shutdown()


@pytest.fixture
async def history_ledger():
    ledger = HistoryLedger()
    await ledger.initialize()
    yield ledger
    await ledger.shutdown()


@pytest.fixture
async def rating_service(player_store):
    service = RatingService(player_store)
    await service.initialize()
    yield service
    await service.shutdown()


@pytest.fixture
async def player_service(player_store, authority):
    service = PlayerService(player_store, authority)
    await service.initialize()
    yield service
    await service.shutdown()


@pytest.fixture
async def lobby_service(
    session_registry,
    history_ledger,
    rating_service,
    player_service,
    authority,
    renderer
):
    service = LobbyService(
        session_registry,
        history_ledger,
        rating_service,
        player_service,
        authority,
        renderer
    )
    await service.initialize()
    yield service
    await service.shutdown()
