from typing import List, Optional, Sequence

BOARD_SIZE = 9

WINNING_LINES = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),  # rows
    (0, 3, 6), (1, 4, 7), (2, 5, 8),  # columns
    (0, 4, 8), (2, 4, 6),             # diagonals
)


def empty_board() -> List[Optional[str]]:
    return [None] * BOARD_SIZE


def find_winner(board: Sequence[Optional[str]]) -> Optional[str]:
    """Return the symbol holding three in a line, if any."""
    for a, b, c in WINNING_LINES:
        if board[a] and board[a] == board[b] == board[c]:
            return board[a]
    return None


def is_full(board: Sequence[Optional[str]]) -> bool:
    return all(cell is not None for cell in board)


def is_valid_cell(position) -> bool:
    # bool is an int subclass; a JSON true/false is not a cell index
    return isinstance(position, int) and not isinstance(position, bool) and 0 <= position < BOARD_SIZE
