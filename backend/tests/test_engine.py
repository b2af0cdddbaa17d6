import pytest

from lynxchat import matches, presence, socketio
from lynxchat.services.matches import DRAW, IN_PROGRESS, O, WON, X


@pytest.fixture()
def sent(flask_app, monkeypatch):
    """Capture engine emits as (event, payload, sid) tuples."""
    outbox = []
    monkeypatch.setattr(matches, '_emit', lambda event, payload, sid: outbox.append((event, payload, sid)))
    presence.register('sid-a', 1, 'alice')
    presence.register('sid-b', 2, 'bob')
    return outbox


def _events(outbox, name, sid=None):
    return [p for e, p, s in outbox if e == name and (sid is None or s == sid)]


def _start(outbox):
    match = matches.accept('sid-b', 'sid-a')
    outbox.clear()
    return match


def test_invite_relays_to_target_and_acknowledges(sent):
    assert matches.invite('sid-a', 'bob', 'general', 'tictactoe')
    received = _events(sent, 'game-invite-received', 'sid-b')
    assert received == [{'from': 'alice', 'fromSocketId': 'sid-a', 'gameType': 'tictactoe', 'roomId': 'general'}]
    assert _events(sent, 'game-invite-sent', 'sid-a') == [{'to': 'bob'}]
    assert len(matches) == 0


def test_invite_unknown_target_reports_error(sent):
    assert not matches.invite('sid-a', 'nobody', 'general')
    assert _events(sent, 'game-error', 'sid-a') == [{'message': 'User not found or offline'}]
    assert not _events(sent, 'game-invite-received')
    assert len(matches) == 0


def test_invite_self_reports_error(sent):
    assert not matches.invite('sid-a', 'alice', 'general')
    assert _events(sent, 'game-error', 'sid-a')


def test_invite_unsupported_game_type(sent):
    assert not matches.invite('sid-a', 'bob', 'general', 'chess')
    assert _events(sent, 'game-error', 'sid-a') == [{'message': 'Unsupported game type: chess'}]


def test_accept_creates_match_and_starts_both(sent):
    match = matches.accept('sid-b', 'sid-a', 'tictactoe')
    assert matches.get(match.id) is match
    start_a = _events(sent, 'game-start', 'sid-a')[0]
    start_b = _events(sent, 'game-start', 'sid-b')[0]
    assert start_a['yourSymbol'] == X and start_a['opponent'] == 'bob'
    assert start_b['yourSymbol'] == O and start_b['opponent'] == 'alice'
    assert start_a['gameId'] == start_b['gameId'] == match.id
    assert start_a['gameState']['board'] == [None] * 9
    assert start_a['gameState']['status'] == IN_PROGRESS


def test_accept_after_inviter_left_is_rejected(sent):
    presence.unregister('sid-a')
    assert matches.accept('sid-b', 'sid-a') is None
    assert _events(sent, 'game-error', 'sid-b') == [{'message': 'Inviter is no longer online'}]
    assert len(matches) == 0


def test_decline_notifies_inviter(sent):
    assert matches.decline('sid-b', 'sid-a')
    assert _events(sent, 'game-declined', 'sid-a') == [{'by': 'bob'}]
    assert len(matches) == 0


def test_move_broadcasts_to_both_players(sent):
    match = _start(sent)
    state = matches.move('sid-a', match.id, 4)
    assert state['board'][4] == X
    assert state['currentTurn'] == O
    assert len(_events(sent, 'game-update', 'sid-a')) == 1
    assert len(_events(sent, 'game-update', 'sid-b')) == 1


def test_rejected_moves_emit_nothing(sent):
    match = _start(sent)
    assert matches.move('sid-b', match.id, 0) is None  # out of turn
    assert matches.move('sid-a', 'game_missing', 0) is None
    assert matches.move('sid-a', ['not', 'an', 'id'], 0) is None
    matches.move('sid-a', match.id, 0)
    sent.clear()
    assert matches.move('sid-b', match.id, 0) is None  # occupied
    assert sent == []


def test_win_schedules_cleanup_and_keeps_match_reachable(sent):
    match = _start(sent)
    for sid, pos in [('sid-a', 0), ('sid-b', 1), ('sid-a', 3), ('sid-b', 4), ('sid-a', 6)]:
        state = matches.move(sid, match.id, pos)
    assert state['status'] == WON
    assert state['winner'] == X
    assert state['gameOver'] is True
    assert matches.get(match.id) is not None
    assert matches.has_pending_cleanup(match.id)
    # Late moves are silently ignored
    assert matches.move('sid-b', match.id, 8) is None


def test_draw_schedules_cleanup(sent):
    match = _start(sent)
    moves = [0, 1, 2, 4, 3, 5, 7, 6, 8]
    for i, pos in enumerate(moves):
        state = matches.move('sid-a' if i % 2 == 0 else 'sid-b', match.id, pos)
    assert state['status'] == DRAW
    assert matches.has_pending_cleanup(match.id)


def test_cleanup_timer_removes_finished_match(sent):
    match = _start(sent)
    for sid, pos in [('sid-a', 0), ('sid-b', 1), ('sid-a', 3), ('sid-b', 4), ('sid-a', 6)]:
        matches.move(sid, match.id, pos)
    matches.schedule_cleanup(match.id, delay_sec=0.05)
    for _ in range(60):
        if matches.get(match.id) is None:
            break
        socketio.sleep(0.05)
    assert matches.get(match.id) is None
    assert not matches.has_pending_cleanup(match.id)


def test_cancelled_cleanup_does_not_remove(sent):
    match = _start(sent)
    token = matches.schedule_cleanup(match.id, delay_sec=30)
    assert matches.cancel_cleanup(match.id)
    assert not matches.cancel_cleanup(match.id)
    assert not matches._expire(match.id, token)
    assert matches.get(match.id) is match


def test_superseded_timer_is_a_no_op(sent):
    match = _start(sent)
    first = matches.schedule_cleanup(match.id, delay_sec=30)
    second = matches.schedule_cleanup(match.id, delay_sec=31)
    assert first != second
    assert not matches._expire(match.id, first)
    assert matches.get(match.id) is match
    assert matches._expire(match.id, second)
    assert matches.get(match.id) is None


def test_quit_forfeits_and_removes_immediately(sent):
    match = _start(sent)
    state = matches.quit('sid-a', match.id)
    assert state['winner'] == O
    assert state['forfeit'] is True
    assert state['disconnected'] is False
    assert matches.get(match.id) is None
    assert len(_events(sent, 'game-update', 'sid-a')) == 1
    assert len(_events(sent, 'game-update', 'sid-b')) == 1


def test_quit_by_stranger_or_on_missing_match_is_ignored(sent):
    match = _start(sent)
    presence.register('sid-c', 3, 'carol')
    assert matches.quit('sid-c', match.id) is None
    assert matches.quit('sid-a', 'game_missing') is None
    assert matches.get(match.id) is match
    assert sent == []


def test_quit_after_natural_win_is_ignored(sent):
    match = _start(sent)
    for sid, pos in [('sid-a', 0), ('sid-b', 1), ('sid-a', 3), ('sid-b', 4), ('sid-a', 6)]:
        matches.move(sid, match.id, pos)
    assert matches.quit('sid-b', match.id) is None
    assert matches.get(match.id).winner == X
    assert not matches.get(match.id).forfeit


def test_disconnect_forfeits_and_notifies_only_opponent(sent):
    match = _start(sent)
    matches.move('sid-a', match.id, 4)
    sent.clear()
    assert matches.disconnect_cleanup('sid-a') == [match.id]
    assert matches.get(match.id) is None
    assert _events(sent, 'game-update', 'sid-a') == []
    update = _events(sent, 'game-update', 'sid-b')[0]
    assert update['gameState']['winner'] == O
    assert update['gameState']['forfeit'] is True
    assert update['gameState']['disconnected'] is True


def test_both_players_disconnecting_resolves_once(sent):
    match = _start(sent)
    assert matches.disconnect_cleanup('sid-b') == [match.id]
    assert matches.disconnect_cleanup('sid-a') == []
    updates = _events(sent, 'game-update')
    assert len(updates) == 1
    assert updates[0]['gameState']['winner'] == X


def test_disconnect_covers_every_match_of_the_connection(sent):
    presence.register('sid-c', 3, 'carol')
    first = matches.accept('sid-b', 'sid-a')
    second = matches.accept('sid-c', 'sid-a')
    other = matches.accept('sid-c', 'sid-b')
    sent.clear()
    resolved = matches.disconnect_cleanup('sid-a')
    assert sorted(resolved) == sorted([first.id, second.id])
    assert matches.get(other.id) is other
    assert {s for e, p, s in sent} == {'sid-b', 'sid-c'}


def test_disconnect_leaves_finished_match_to_its_timer(sent):
    match = _start(sent)
    for sid, pos in [('sid-a', 0), ('sid-b', 1), ('sid-a', 3), ('sid-b', 4), ('sid-a', 6)]:
        matches.move(sid, match.id, pos)
    sent.clear()
    assert matches.disconnect_cleanup('sid-b') == []
    assert matches.get(match.id).winner == X
    assert matches.has_pending_cleanup(match.id)
    assert sent == []


def test_inviter_disconnecting_during_accept_creates_no_match(sent, monkeypatch):
    real_get = presence.get

    def _get_then_drop_inviter(sid):
        entry = real_get(sid)
        if sid == 'sid-a':
            # The inviter's disconnect handler runs right after the lookup
            presence.unregister('sid-a')
            matches.disconnect_cleanup('sid-a')
        return entry

    monkeypatch.setattr(presence, 'get', _get_then_drop_inviter)
    assert matches.accept('sid-b', 'sid-a') is None
    assert matches.active_ids() == []
    assert _events(sent, 'game-error', 'sid-b') == [{'message': 'Inviter is no longer online'}]
    assert _events(sent, 'game-start') == []


def test_acceptor_disconnecting_during_accept_creates_no_match(sent, monkeypatch):
    real_get = presence.get

    def _get_then_drop_acceptor(sid):
        entry = real_get(sid)
        if sid == 'sid-a':
            presence.unregister('sid-b')
            matches.disconnect_cleanup('sid-b')
        return entry

    monkeypatch.setattr(presence, 'get', _get_then_drop_acceptor)
    assert matches.accept('sid-b', 'sid-a') is None
    assert matches.active_ids() == []
    assert sent == []


def test_accepted_match_is_listed_as_active(sent):
    match = matches.accept('sid-b', 'sid-a')
    assert matches.active_ids() == [match.id]
