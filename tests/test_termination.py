from game.board import Board
from game.piece import PieceType as T, Seat
from game.termination import check_game_over, next_active_seat, seat_is_alive, team_strength

S, E, N, W = Seat.SOUTH, Seat.EAST, Seat.NORTH, Seat.WEST


def setup(put, movers=(S, E, N, W)):
    board = Board()
    for seat, rc in ((S, (16, 7)), (E, (9, 16)), (N, (0, 9)), (W, (7, 0))):
        put(board, rc, T.FLAG, seat)
    for seat, rc in ((S, (12, 8)), (E, (8, 12)), (N, (4, 8)), (W, (8, 4))):
        if seat in movers:
            put(board, rc, T.REGIMENT, seat)
    return board


def test_rotation_order(put):
    board = setup(put)
    assert next_active_seat(board, S) == E
    assert next_active_seat(board, E) == N
    assert next_active_seat(board, W) == S


def test_rotation_skips_dead_and_immobile(put):
    board = setup(put, movers=(S, N, W))
    assert next_active_seat(board, S, {E}) == N
    assert next_active_seat(board, S) == E
    assert next_active_seat(board, S, require_moves=True) == N
    # 没有其他座位能走时留在原座位
    assert next_active_seat(board, S, {E, N, W}) == S


def test_seat_without_moves_is_dead(put):
    board = setup(put, movers=(S, N, W))
    assert not seat_is_alive(board, E)
    result = check_game_over(board)
    assert result.newly_dead == [E]
    assert not result.is_over


def test_team_elimination(put):
    board = setup(put)
    board.remove_piece(board.find_flag(E))
    board.remove_piece(board.find_flag(W))
    result = check_game_over(board)
    assert result.is_over
    assert result.winner_team == S.team
    assert set(result.newly_dead) == {E, W}


def test_already_dead_not_reported_again(put):
    board = setup(put)
    board.remove_piece(board.find_flag(E))
    result = check_game_over(board, {E})
    assert result.newly_dead == []
    assert not result.is_over


def test_team_strength(put):
    board = setup(put)
    put(board, (15, 8), T.BOMB, S)
    put(board, (16, 8), T.MINE, S)
    strength = team_strength(board)
    assert strength[S.team] == 6 + 6 + 8
    assert strength[E.team] == 6 + 6
