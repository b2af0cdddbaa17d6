import logging
import threading
import time
from typing import Dict, Iterable, List, Optional

from lynxchat import socketio
from .match import GAME_TYPE, Match, O, X


class MatchEngine:
    """Owns every in-progress match and the timers that retire finished ones.

    Invites are relayed between connections and never stored; a match only
    exists from acceptance until it is resolved and removed.
    """

    def __init__(self, presence):
        self.presence = presence
        self.namespace = '/'
        self.cleanup_delay = 60.0
        self._app = None
        self._lock = threading.Lock()
        self._matches: Dict[str, Match] = {}
        self._cleanup_deadlines: Dict[str, float] = {}

    def init_app(self, app) -> None:
        self._app = app
        self.namespace = app.config.get('SOCKETIO_NAMESPACE', '/')
        self.cleanup_delay = float(app.config.get('MATCH_CLEANUP_DELAY_SEC', 60))
        self.clear()
        app.extensions['lynxchat.matches'] = self

    @property
    def logger(self):
        return self._app.logger if self._app else logging.getLogger(__name__)

    # ---- lookups ----

    def get(self, match_id: str) -> Optional[Match]:
        with self._lock:
            return self._matches.get(match_id)

    def active_ids(self) -> List[str]:
        with self._lock:
            return list(self._matches)

    def clear(self) -> None:
        with self._lock:
            self._matches.clear()
            self._cleanup_deadlines.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._matches)

    # ---- invite relay ----

    def invite(self, from_sid: str, target_username, room_id=None, game_type=None) -> bool:
        inviter = self.presence.get(from_sid)
        if inviter is None:
            return False
        game_type = game_type or GAME_TYPE
        if game_type != GAME_TYPE:
            self._error(from_sid, f'Unsupported game type: {game_type}')
            return False

        target_sid = self.presence.find(target_username) if isinstance(target_username, str) else None
        if target_sid is None:
            self._error(from_sid, 'User not found or offline')
            return False
        if target_sid == from_sid:
            self._error(from_sid, 'You cannot invite yourself')
            return False

        self._emit('game-invite-received', {
            'from': inviter.username,
            'fromSocketId': from_sid,
            'gameType': game_type,
            'roomId': room_id,
        }, target_sid)
        self._emit('game-invite-sent', {'to': target_username}, from_sid)
        self.logger.info(f"[match-invite] from={inviter.username} to={target_username} room={room_id}")
        return True

    def accept(self, acceptor_sid: str, inviter_sid, game_type=None) -> Optional[Match]:
        acceptor = self.presence.get(acceptor_sid)
        if acceptor is None:
            return None
        game_type = game_type or GAME_TYPE
        if game_type != GAME_TYPE:
            self._error(acceptor_sid, f'Unsupported game type: {game_type}')
            return None
        inviter = self.presence.get(inviter_sid) if isinstance(inviter_sid, str) else None
        if inviter is None:
            self._error(acceptor_sid, 'Inviter is no longer online')
            return None
        if inviter_sid == acceptor_sid:
            self._error(acceptor_sid, 'You cannot play against yourself')
            return None

        match = Match.start(inviter_sid, inviter.username, acceptor_sid, acceptor.username)
        with self._lock:
            # Disconnect drops presence before it takes this lock
            inviter_online = self.presence.is_online(inviter_sid)
            if inviter_online and self.presence.is_online(acceptor_sid):
                self._matches[match.id] = match
                state = match.to_dict()
            else:
                state = None
        if state is None:
            if inviter_online:
                return None
            self._error(acceptor_sid, 'Inviter is no longer online')
            return None

        self._emit('game-start', {
            'gameId': match.id,
            'gameState': state,
            'yourSymbol': X,
            'opponent': acceptor.username,
        }, inviter_sid)
        self._emit('game-start', {
            'gameId': match.id,
            'gameState': state,
            'yourSymbol': O,
            'opponent': inviter.username,
        }, acceptor_sid)
        self.logger.info(f"[match-start] game={match.id} X={inviter.username} O={acceptor.username}")
        return match

    def decline(self, decliner_sid: str, inviter_sid) -> bool:
        decliner = self.presence.get(decliner_sid)
        if decliner is None or not isinstance(inviter_sid, str) or not inviter_sid:
            return False
        self._emit('game-declined', {'by': decliner.username}, inviter_sid)
        return True

    # ---- play ----

    def move(self, sid: str, match_id, position) -> Optional[dict]:
        """Apply a move; stale, out-of-turn or invalid moves are ignored."""
        if not isinstance(match_id, str):
            return None
        with self._lock:
            match = self._matches.get(match_id)
            if match is None or not match.apply_move(sid, position):
                return None
            state = match.to_dict()
            finished = match.is_over
            recipients = list(match.players.values())

        self._broadcast_update(match_id, state, recipients)
        if finished:
            self.logger.info(f"[match-over] game={match_id} status={state['status']} winner={state['winner']}")
            self.schedule_cleanup(match_id)
        return state

    def quit(self, sid: str, match_id) -> Optional[dict]:
        if not isinstance(match_id, str):
            return None
        with self._lock:
            match = self._matches.get(match_id)
            if match is None or not match.resign(sid):
                return None
            del self._matches[match_id]
            self._cleanup_deadlines.pop(match_id, None)
            state = match.to_dict()
            recipients = list(match.players.values())

        self._broadcast_update(match_id, state, recipients)
        self.logger.info(f"[match-forfeit] game={match_id} winner={state['winner']}")
        return state

    def disconnect_cleanup(self, sid: str) -> List[str]:
        """Forfeit every in-progress match the departing connection plays in.

        Finished matches still inside their grace period are left for their
        cleanup timer so the opponent can keep rendering the result.
        """
        resolved = []
        with self._lock:
            for match_id, match in list(self._matches.items()):
                if not match.resign(sid, disconnected=True):
                    continue
                del self._matches[match_id]
                self._cleanup_deadlines.pop(match_id, None)
                resolved.append((match_id, match.opponent_of(sid), match.to_dict()))

        for match_id, opponent_sid, state in resolved:
            self._emit('game-update', {'gameId': match_id, 'gameState': state}, opponent_sid)
            self.logger.info(f"[match-abandoned] game={match_id} winner={state['winner']}")
        return [match_id for match_id, _, _ in resolved]

    # ---- delayed removal ----

    def schedule_cleanup(self, match_id: str, delay_sec: Optional[float] = None) -> float:
        delay = self.cleanup_delay if delay_sec is None else delay_sec
        deadline = time.time() + delay
        with self._lock:
            self._cleanup_deadlines[match_id] = deadline

        def _runner(mid: str, token: float):
            sleep_for = max(0.0, token - time.time())
            if sleep_for:
                socketio.sleep(sleep_for)
            self._expire(mid, token)

        socketio.start_background_task(_runner, match_id, deadline)
        return deadline

    def cancel_cleanup(self, match_id: str) -> bool:
        with self._lock:
            return self._cleanup_deadlines.pop(match_id, None) is not None

    def has_pending_cleanup(self, match_id: str) -> bool:
        with self._lock:
            return match_id in self._cleanup_deadlines

    def _expire(self, match_id: str, token: float) -> bool:
        with self._lock:
            # A cancelled or rescheduled timer no longer owns the match
            if self._cleanup_deadlines.get(match_id) != token:
                return False
            del self._cleanup_deadlines[match_id]
            removed = self._matches.pop(match_id, None) is not None
        self.logger.info(f"[cleanup-fire] game={match_id} removed={removed}")
        return removed

    # ---- transport ----

    def _broadcast_update(self, match_id: str, state: dict, recipients: Iterable[str]) -> None:
        for sid in recipients:
            self._emit('game-update', {'gameId': match_id, 'gameState': state}, sid)

    def _error(self, sid: str, message: str) -> None:
        self._emit('game-error', {'message': message}, sid)

    def _emit(self, event: str, payload: dict, sid: str) -> None:
        socketio.emit(event, payload, to=sid, namespace=self.namespace)
