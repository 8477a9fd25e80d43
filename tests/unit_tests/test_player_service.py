import pytest

from lobby.exceptions import (
    InvalidHandle,
    LobbyError,
    NotAuthorized,
    PlayerNotFound
)
from lobby.player_service import parse_handle
from tests.conftest import ADMIN


@pytest.mark.parametrize("text,handle", [
    ("Faker#KR1", "Faker#KR1"),
    ("  Faker#KR1  ", "Faker#KR1"),
    ('"Hide on bush#KR1"', "Hide on bush#KR1"),
    ('"Hide on bush#KR1', "Hide on bush#KR1"),
])
def test_parse_handle(text, handle):
    assert parse_handle(text) == handle


@pytest.mark.parametrize("text", [
    "Faker",
    "#KR1",
    "Faker#",
    "Faker#  ",
    "Fa#ker#KR1",
    "",
])
def test_parse_handle_invalid(text):
    with pytest.raises(InvalidHandle):
        parse_handle(text)


async def test_ensure_registered(player_service, player_store):
    record = await player_service.ensure_registered("1", "Alice")

    assert record.rating == 1500
    assert record.games_played == 0
    assert record.wins == 0
    assert record.losses == 0
    assert "1" in player_store.records

    # Existing records are left alone
    player_store.add("2", rating=1800, display_name="Bob")
    record = await player_service.ensure_registered("2", "Robert")
    assert record.rating == 1800
    assert record.display_name == "Bob"


async def test_get_participant(player_service, player_store):
    player_store.add("1", rating=1700, external_handle="Alice#EUW")

    participant = await player_service.get_participant("1", "Alice")

    assert participant.identity == "1"
    assert participant.rating == 1700
    assert participant.external_handle == "Alice#EUW"


async def test_register_self(player_service):
    record = await player_service.register("1", "Alice", requester="1")

    assert record.display_name == "Alice"


async def test_register_updates_name(player_service, player_store):
    player_store.add("1", rating=1600, display_name="Alice")

    record = await player_service.register("1", "Alicia")

    assert record.display_name == "Alicia"
    assert record.rating == 1600


async def test_register_someone_else(player_service, player_store):
    with pytest.raises(NotAuthorized):
        await player_service.register("2", "Bob", requester="1")
    assert "2" not in player_store.records

    await player_service.register("2", "Bob", requester=ADMIN)
    assert "2" in player_store.records


async def test_link_handle(player_service, player_store):
    handle = await player_service.link_handle("1", "Alice", '"Alice Smith#EUW"')

    assert handle == "Alice Smith#EUW"
    assert player_store.records["1"].external_handle == "Alice Smith#EUW"


async def test_link_handle_invalid(player_service, player_store):
    with pytest.raises(InvalidHandle):
        await player_service.link_handle("1", "Alice", "AliceSmith")

    assert "1" not in player_store.records


async def test_profile(player_service, player_store):
    player_store.add("1", rating=1600, games_played=3, wins=2, losses=1)

    record = await player_service.profile("1")

    assert record.rating == 1600
    assert record.win_rate == 66.7


async def test_profile_no_games(player_service, player_store):
    player_store.add("1")

    assert (await player_service.profile("1")).win_rate == 0.0


async def test_profile_unknown(player_service):
    with pytest.raises(PlayerNotFound):
        await player_service.profile("ghost")


async def test_leaderboard(player_service, player_store):
    player_store.add("a", rating=1900, games_played=10, wins=5, losses=5)
    player_store.add("b", rating=1700, games_played=4, wins=3, losses=1)
    player_store.add("c", rating=1800, games_played=8, wins=6, losses=2)
    player_store.add("d", rating=2000)
    player_store.add("e", rating=1100, games_played=1, wins=0, losses=1)

    leaderboard = await player_service.leaderboard(limit=3)

    assert [r.identity for r in leaderboard.by_rating] == ["d", "a", "c"]
    # b and c both have 75%, c played more
    assert [r.identity for r in leaderboard.by_win_rate] == ["c", "b", "a"]


async def test_leaderboard_default_size(player_service, player_store):
    for i in range(8):
        player_store.add(str(i), rating=1000 + i, games_played=1, wins=1)

    leaderboard = await player_service.leaderboard()

    assert len(leaderboard.by_rating) == 5
    assert len(leaderboard.by_win_rate) == 5


async def test_leaderboard_skips_players_without_games(player_service, player_store):
    player_store.add("1")

    leaderboard = await player_service.leaderboard()

    assert [r.identity for r in leaderboard.by_rating] == ["1"]
    assert leaderboard.by_win_rate == []


async def test_adjust_rating(player_service, player_store):
    player_store.add("1", rating=1500)

    record = await player_service.adjust_rating("1", -75, ADMIN)

    assert record.rating == 1425


async def test_adjust_rating_needs_authority(player_service, player_store):
    player_store.add("1", rating=1500)

    with pytest.raises(NotAuthorized):
        await player_service.adjust_rating("1", 500, "1")

    assert player_store.records["1"].rating == 1500


async def test_adjust_rating_unknown_player(player_service):
    with pytest.raises(PlayerNotFound):
        await player_service.adjust_rating("ghost", 10, ADMIN)


async def test_remove_win(player_service, player_store):
    player_store.add("1", games_played=2, wins=1, losses=1)

    record = await player_service.remove_win("1", ADMIN)

    assert record.wins == 0
    assert record.games_played == 1
    assert record.losses == 1


async def test_remove_loss(player_service, player_store):
    player_store.add("1", games_played=2, wins=1, losses=1)

    record = await player_service.remove_loss("1", ADMIN)

    assert record.losses == 0
    assert record.games_played == 1


async def test_remove_win_without_wins(player_service, player_store):
    player_store.add("1", games_played=1, wins=0, losses=1)

    with pytest.raises(LobbyError):
        await player_service.remove_win("1", ADMIN)

    assert player_store.records["1"].games_played == 1


async def test_remove_loss_needs_authority(player_service, player_store):
    player_store.add("1", games_played=1, losses=1)

    with pytest.raises(NotAuthorized):
        await player_service.remove_loss("1", "1")
