import pytest

from ai.collaborators import TableBonusProvider
from ai.memory import AIMemory
from game.board import Board
from game.coords import Position
from game.history import HistoryRecorder, MoveRecord
from game.piece import Piece, PieceType as T, Seat
from server.strategies.behaviors import CATEGORY_ATTACK, CATEGORY_DEFEND, classify_move
from server.strategies import scoring
from server.strategies.personas import Persona
from server.strategies.scoring import choose_greedy_move, score_moves, win_probability

S, E, N, W = Seat.SOUTH, Seat.EAST, Seat.NORTH, Seat.WEST


def P(r, c):
    return Position(r, c)


@pytest.fixture
def flags(put):
    board = Board()
    for seat, rc in ((S, (16, 7)), (E, (9, 16)), (N, (0, 9)), (W, (7, 0))):
        put(board, rc, T.FLAG, seat)
    return board


def by_move(scored, src, dst):
    return next(m for m in scored if m.from_pos == P(*src) and m.to_pos == P(*dst))


def test_avoids_confirmed_mine(flags, put):
    board = flags
    put(board, (15, 8), T.REGIMENT, S)
    target = put(board, (16, 8), T.PLATOON, E)
    memory = AIMemory(S)
    memory.reset_from_board(board)
    memory.memories[target.piece_id].confirmed_mine = True
    result = choose_greedy_move(board, S, memory)
    assert result.best_move is not None
    assert result.best_move != (P(15, 8), P(16, 8))
    scored = score_moves(board, S, memory)
    assert "avoid_mine" in by_move(scored, (15, 8), (16, 8)).tactics


def test_engineer_may_dig_confirmed_mine(flags, put):
    board = flags
    put(board, (15, 8), T.ENGINEER, S)
    target = put(board, (16, 8), T.MINE, E)
    memory = AIMemory(S)
    memory.reset_from_board(board)
    memory.memories[target.piece_id].confirmed_mine = True
    scored = score_moves(board, S, memory)
    assert "avoid_mine" not in by_move(scored, (15, 8), (16, 8)).tactics


def test_captures_revealed_flag(flags, put):
    board = flags
    board.reveal_flag(E)
    put(board, (8, 16), T.PLATOON, S)
    put(board, (12, 8), T.COMMANDER, S)
    result = choose_greedy_move(board, S, AIMemory(S))
    assert result.best_move == (P(8, 16), P(9, 16))
    assert result.strategy == "greedy"


def test_intercepts_flag_threat(flags, put):
    board = flags
    put(board, (15, 8), T.GENERAL, S)
    put(board, (12, 6), T.REGIMENT, S)
    put(board, (16, 8), T.ENGINEER, E, revealed=True)
    result = choose_greedy_move(board, S, AIMemory(S))
    assert result.best_move == (P(15, 8), P(16, 8))
    scored = score_moves(board, S, AIMemory(S))
    assert "intercept_sure" in by_move(scored, (15, 8), (16, 8)).tactics


def test_undo_and_revisit_penalties(flags, put):
    board = flags
    mover = put(board, (12, 8), T.REGIMENT, S)
    history = HistoryRecorder()
    history.add_record(MoveRecord(
        turn=1, seat="south", piece_id=mover.piece_id,
        from_pos=(13, 8), to_pos=(12, 8), from_local=(3, 3), to_local=(2, 3), outcome="move",
    ))
    scored = score_moves(board, S, AIMemory(S), history=history)
    back = by_move(scored, (12, 8), (13, 8))
    assert "undo" in back.tactics
    assert back.score < by_move(scored, (12, 8), (12, 7)).score


def test_bonus_provider_breaks_tie(flags, put):
    board = flags
    put(board, (12, 8), T.REGIMENT, S)
    table = {(S, (12, 8), (12, 9)): 1e6}
    result = choose_greedy_move(board, S, None, bonus_provider=TableBonusProvider(table))
    assert result.best_move == (P(12, 8), P(12, 9))


def test_greedy_is_deterministic(flags, put):
    board = flags
    put(board, (12, 8), T.REGIMENT, S)
    put(board, (15, 6), T.ENGINEER, S)
    put(board, (11, 8), T.PLATOON, E)
    memory = AIMemory(S)
    memory.reset_from_board(board)
    first = choose_greedy_move(board, S, memory, Persona.AGGRESSIVE)
    second = choose_greedy_move(board, S, memory, Persona.AGGRESSIVE)
    assert first.best_move == second.best_move and first.score == second.score


def test_no_candidates(flags):
    result = choose_greedy_move(flags, S, None)
    assert result.best_move is None and result.score is None


def test_win_probability_uses_possible_types():
    mover = Piece("s", T.DIVISION, S)
    target = Piece("e", T.PLATOON, E)
    assert win_probability(mover, target, None)[0] < 1.0
    assert win_probability(mover, target.reveal(), None) == (1.0, 0.0, 0.0)
    bomb = Piece("b", T.BOMB, E, revealed=True)
    assert win_probability(mover, bomb, None) == (0.0, 1.0, 0.0)


def test_classify_move(flags, put):
    board = flags
    put(board, (12, 8), T.REGIMENT, S)
    put(board, (11, 8), T.PLATOON, E)
    assert classify_move(board, S, P(12, 8), P(11, 8)) == CATEGORY_ATTACK
    assert classify_move(board, S, P(12, 8), P(13, 8)) == CATEGORY_DEFEND


def test_only_chosen_move_is_classified(flags, put, monkeypatch):
    board = flags
    put(board, (12, 8), T.REGIMENT, S)
    put(board, (15, 6), T.ENGINEER, S)
    put(board, (11, 8), T.PLATOON, E)
    calls = []

    def counting(board_, seat, src, dst):
        calls.append((src, dst))
        return classify_move(board_, seat, src, dst)

    monkeypatch.setattr(scoring, "classify_move", counting)
    scored = score_moves(board, S, None)
    assert len(scored) > 3 and calls == []
    result = choose_greedy_move(board, S, None)
    assert calls == [result.best_move]
    assert result.category == classify_move(board, S, *result.best_move)
