import asyncio

import pytest

from lobby.exceptions import InvalidTransition, NotAuthorized, NothingToUndo
from lobby.metrics import UndoOutcome
from lobby.sessions import Side
from tests.conftest import ADMIN


async def play_game(lobby_service, player_store, ratings, winner=Side.A, handle="msg1"):
    await lobby_service.open_balanced_lobby(handle, "channel", "creator")
    for rating in ratings:
        identity = f"{handle}-{rating}"
        if identity not in player_store.records:
            player_store.add(identity, rating=rating)
        await lobby_service.enroll(handle, identity)
    await lobby_service.start_balanced(handle, "creator")
    return await lobby_service.select_winner(handle, winner, ADMIN)


async def wait_for_prompt(renderer, count=1):
    while renderer.render_undo_prompt.await_count < count:
        await asyncio.sleep(0)


@pytest.fixture
async def finished_game(lobby_service, player_store):
    for rating in (1200, 1400, 1600, 1800):
        player_store.add(f"msg1-{rating}", rating=rating)
    before = dict(player_store.records)
    result = await play_game(lobby_service, player_store, (1200, 1400, 1600, 1800))
    return before, result


async def test_undo_confirmed(
    lobby_service,
    history_ledger,
    player_store,
    renderer,
    finished_game
):
    before, result = finished_game
    assert player_store.records != before

    undo = asyncio.create_task(lobby_service.request_undo("channel", ADMIN))
    await wait_for_prompt(renderer)
    renderer.render_undo_prompt.assert_awaited_once_with(result)

    await lobby_service.confirm_undo("channel", ADMIN)
    reverted = await undo

    assert reverted is result
    assert player_store.records == before
    assert history_ledger.peek("channel") is None
    renderer.render_undo_outcome.assert_awaited_once_with(
        result, UndoOutcome.CONFIRMED
    )


async def test_undo_is_single_use(lobby_service, renderer, finished_game):
    undo = asyncio.create_task(lobby_service.request_undo("channel", ADMIN))
    await wait_for_prompt(renderer)
    await lobby_service.confirm_undo("channel", ADMIN)
    await undo

    with pytest.raises(NothingToUndo):
        await lobby_service.request_undo("channel", ADMIN)


async def test_undo_rejected(
    lobby_service,
    history_ledger,
    player_store,
    renderer,
    finished_game
):
    _, result = finished_game
    after_game = dict(player_store.records)

    undo = asyncio.create_task(lobby_service.request_undo("channel", ADMIN))
    await wait_for_prompt(renderer)
    await lobby_service.reject_undo("channel", ADMIN)

    assert await undo is None
    assert player_store.records == after_game
    assert history_ledger.peek("channel") is result
    renderer.render_undo_outcome.assert_awaited_once_with(
        result, UndoOutcome.REJECTED
    )


async def test_undo_times_out(
    lobby_service,
    history_ledger,
    player_store,
    renderer,
    finished_game,
    mocker
):
    mocker.patch("lobby.lobby_service.config.UNDO_CONFIRMATION_TIMEOUT", 0.05)
    _, result = finished_game
    after_game = dict(player_store.records)

    assert await lobby_service.request_undo("channel", ADMIN) is None

    assert player_store.records == after_game
    assert history_ledger.peek("channel") is result
    renderer.render_undo_outcome.assert_awaited_once_with(
        result, UndoOutcome.TIMED_OUT
    )

    # A late confirmation has nothing to confirm
    with pytest.raises(InvalidTransition):
        await lobby_service.confirm_undo("channel", ADMIN)


async def test_undo_nothing_recorded(lobby_service, renderer):
    with pytest.raises(NothingToUndo):
        await lobby_service.request_undo("channel", ADMIN)

    renderer.render_undo_prompt.assert_not_awaited()


async def test_undo_needs_authority(lobby_service, renderer, finished_game):
    with pytest.raises(NotAuthorized):
        await lobby_service.request_undo("channel", "creator")

    renderer.render_undo_prompt.assert_not_awaited()


async def test_undo_confirmation_needs_authority(
    lobby_service,
    history_ledger,
    renderer,
    finished_game
):
    undo = asyncio.create_task(lobby_service.request_undo("channel", ADMIN))
    await wait_for_prompt(renderer)

    with pytest.raises(NotAuthorized):
        await lobby_service.confirm_undo("channel", "creator")
    with pytest.raises(NotAuthorized):
        await lobby_service.reject_undo("channel", "creator")

    assert not undo.done()
    await lobby_service.reject_undo("channel", ADMIN)
    assert await undo is None


async def test_confirm_without_request(lobby_service, finished_game):
    with pytest.raises(InvalidTransition):
        await lobby_service.confirm_undo("channel", ADMIN)


async def test_one_pending_undo_per_scope(lobby_service, renderer, finished_game):
    undo = asyncio.create_task(lobby_service.request_undo("channel", ADMIN))
    await wait_for_prompt(renderer)

    with pytest.raises(InvalidTransition):
        await lobby_service.request_undo("channel", ADMIN)

    await lobby_service.reject_undo("channel", ADMIN)
    await undo


async def test_undo_superseded_while_pending(
    lobby_service,
    history_ledger,
    player_store,
    renderer,
    finished_game
):
    undo = asyncio.create_task(lobby_service.request_undo("channel", ADMIN))
    await wait_for_prompt(renderer)

    newer = await play_game(
        lobby_service, player_store, (1300, 1700), handle="msg2"
    )
    after_newer = dict(player_store.records)

    await lobby_service.confirm_undo("channel", ADMIN)
    with pytest.raises(InvalidTransition):
        await undo

    assert history_ledger.peek("channel") is newer
    assert player_store.records == after_newer
    assert renderer.render_undo_outcome.await_args.args[1] == UndoOutcome.SUPERSEDED


async def test_undo_only_reaches_the_latest_result(
    lobby_service,
    player_store,
    renderer,
    finished_game
):
    player_store.add("msg2-1300", rating=1300)
    player_store.add("msg2-1700", rating=1700)
    before_second = dict(player_store.records)
    second = await play_game(
        lobby_service, player_store, (1300, 1700), handle="msg2"
    )

    undo = asyncio.create_task(lobby_service.request_undo("channel", ADMIN))
    await wait_for_prompt(renderer)
    await lobby_service.confirm_undo("channel", ADMIN)

    assert await undo is second
    # The first game stays counted
    assert player_store.records == before_second
    assert player_store.records["msg1-1800"].games_played == 1
    with pytest.raises(NothingToUndo):
        await lobby_service.request_undo("channel", ADMIN)


async def test_undo_scopes_are_independent(
    lobby_service,
    player_store,
    renderer,
    finished_game
):
    await lobby_service.open_manual_lobby("msg9", "elsewhere", "creator")
    await lobby_service.enroll("msg9", "x", Side.A)
    await lobby_service.force_start("msg9", "creator")
    await lobby_service.confirm("msg9", ADMIN)
    other = await lobby_service.select_winner("msg9", Side.A, ADMIN)

    first = asyncio.create_task(lobby_service.request_undo("channel", ADMIN))
    second = asyncio.create_task(lobby_service.request_undo("elsewhere", ADMIN))
    await wait_for_prompt(renderer, 2)

    await lobby_service.confirm_undo("elsewhere", ADMIN)
    await lobby_service.reject_undo("channel", ADMIN)

    assert await second is other
    assert await first is None
    assert player_store.records["x"].games_played == 0
