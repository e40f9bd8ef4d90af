"""
测试公共夹具：空棋盘与摆子工具。
"""

import sys
from itertools import count
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from game.board import Board  # noqa: E402
from game.coords import Position  # noqa: E402
from game.piece import Piece  # noqa: E402


@pytest.fixture
def board() -> Board:
    return Board()


@pytest.fixture
def put():
    """put(board, (row, col), PieceType, Seat, revealed=False) -> Piece"""
    seq = count(1)

    def _put(board, rc, piece_type, seat, revealed=False, piece_id=None):
        pid = piece_id or f"{seat.label}_t{next(seq):02d}"
        piece = Piece(pid, piece_type, seat, revealed)
        assert board.place_piece(Position(*rc), piece)
        return piece

    return _put
