import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .board import empty_board, find_winner, is_full, is_valid_cell

X = 'X'
O = 'O'

IN_PROGRESS = 'in_progress'
WON = 'won'
DRAW = 'draw'

GAME_TYPE = 'tictactoe'


def other_symbol(symbol: str) -> str:
    return O if symbol == X else X


def generate_match_id() -> str:
    return f"game_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


@dataclass
class Match:
    """One ephemeral two-player game.

    The inviter always plays X and moves first. Outcome only ever moves from
    ``in_progress`` to ``won`` or ``draw``; ``forfeit`` and ``disconnected``
    record how a ``won`` outcome was reached when nobody completed a line.
    """

    id: str
    players: Dict[str, str]
    player_names: Dict[str, Optional[str]]
    game_type: str = GAME_TYPE
    board: List[Optional[str]] = field(default_factory=empty_board)
    current_turn: str = X
    status: str = IN_PROGRESS
    winner: Optional[str] = None
    forfeit: bool = False
    disconnected: bool = False

    @classmethod
    def start(cls, inviter_sid: str, inviter_name: Optional[str], acceptor_sid: str, acceptor_name: Optional[str]):
        return cls(
            id=generate_match_id(),
            players={X: inviter_sid, O: acceptor_sid},
            player_names={X: inviter_name, O: acceptor_name},
        )

    @property
    def is_over(self) -> bool:
        return self.status != IN_PROGRESS

    def symbol_for(self, sid: str) -> Optional[str]:
        for symbol, player_sid in self.players.items():
            if player_sid == sid:
                return symbol
        return None

    def opponent_of(self, sid: str) -> Optional[str]:
        symbol = self.symbol_for(sid)
        if symbol is None:
            return None
        return self.players[other_symbol(symbol)]

    def apply_move(self, sid: str, position) -> bool:
        """Place the mover's symbol; returns False when the move is ignored."""
        if self.is_over or not is_valid_cell(position):
            return False
        symbol = self.symbol_for(sid)
        if symbol is None or symbol != self.current_turn:
            return False
        if self.board[position] is not None:
            return False

        self.board[position] = symbol
        # A completed line wins even when it also fills the board
        winner = find_winner(self.board)
        if winner:
            self.status = WON
            self.winner = winner
        elif is_full(self.board):
            self.status = DRAW
        else:
            self.current_turn = other_symbol(symbol)
        return True

    def resign(self, sid: str, disconnected: bool = False) -> bool:
        """Resolve the match in favour of the other player."""
        if self.is_over:
            return False
        symbol = self.symbol_for(sid)
        if symbol is None:
            return False
        self.status = WON
        self.winner = other_symbol(symbol)
        self.forfeit = True
        self.disconnected = disconnected
        return True

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'type': self.game_type,
            'players': dict(self.players),
            'playerNames': dict(self.player_names),
            'board': list(self.board),
            'currentTurn': self.current_turn,
            'status': self.status,
            'winner': self.winner,
            'gameOver': self.is_over,
            'forfeit': self.forfeit,
            'disconnected': self.disconnected,
        }
