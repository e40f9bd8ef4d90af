import pytest

from game.board import Board
from game.combat import OUTCOME_ATTACKER_WINS, OUTCOME_BOTH_DIE, OUTCOME_DEFENDER_WINS, resolve
from game.coords import Position
from game.piece import Piece, PieceType as T, Seat
from game.termination import check_game_over


def pc(pt, seat=Seat.SOUTH):
    return Piece(f"{seat.label}_{pt.name.lower()}", pt, seat)


@pytest.mark.parametrize("attacker,defender,label", [
    (T.COMMANDER, T.GENERAL, OUTCOME_ATTACKER_WINS),
    (T.PLATOON, T.BRIGADE, OUTCOME_DEFENDER_WINS),
    (T.REGIMENT, T.REGIMENT, OUTCOME_BOTH_DIE),
    (T.BOMB, T.COMMANDER, OUTCOME_BOTH_DIE),
    (T.ENGINEER, T.BOMB, OUTCOME_BOTH_DIE),
    (T.ENGINEER, T.MINE, OUTCOME_ATTACKER_WINS),
    (T.COMMANDER, T.MINE, OUTCOME_DEFENDER_WINS),
    (T.BOMB, T.MINE, OUTCOME_BOTH_DIE),
    (T.ENGINEER, T.FLAG, OUTCOME_ATTACKER_WINS),
    (T.COMMANDER, T.COMMANDER, OUTCOME_BOTH_DIE),
    (T.BOMB, T.FLAG, OUTCOME_BOTH_DIE),
])
def test_resolve_table(attacker, defender, label):
    assert resolve(pc(attacker), pc(defender, Seat.EAST)).label == label


def test_bomb_on_flag_destroys_both():
    out = resolve(pc(T.BOMB), pc(T.FLAG, Seat.EAST))
    assert not out.attacker_survives and not out.defender_survives
    assert not out.is_flag_capture
    assert resolve(pc(T.PLATOON), pc(T.FLAG, Seat.EAST)).is_flag_capture


MOVABLE = [pt for pt in T if pt not in (T.MINE, T.FLAG)]
MIRROR = {
    OUTCOME_ATTACKER_WINS: OUTCOME_DEFENDER_WINS,
    OUTCOME_DEFENDER_WINS: OUTCOME_ATTACKER_WINS,
    OUTCOME_BOTH_DIE: OUTCOME_BOTH_DIE,
}


@pytest.mark.parametrize("a", MOVABLE)
@pytest.mark.parametrize("b", MOVABLE)
def test_swapping_roles_mirrors_outcome(a, b):
    forward = resolve(pc(a), pc(b, Seat.EAST)).label
    backward = resolve(pc(b), pc(a, Seat.EAST)).label
    assert backward == MIRROR[forward]


@pytest.mark.parametrize("a", MOVABLE)
def test_only_engineer_survives_mine(a):
    out = resolve(pc(a), pc(T.MINE, Seat.EAST))
    if a == T.ENGINEER:
        assert out.attacker_survives and not out.defender_survives
    elif a == T.BOMB:
        assert out.label == OUTCOME_BOTH_DIE
    else:
        assert out.label == OUTCOME_DEFENDER_WINS


def test_commander_death_flag():
    both = resolve(pc(T.COMMANDER), pc(T.COMMANDER, Seat.EAST))
    assert both.label == OUTCOME_BOTH_DIE and both.is_commander_death
    assert resolve(pc(T.COMMANDER), pc(T.BOMB, Seat.EAST)).is_commander_death
    assert resolve(pc(T.GENERAL), pc(T.COMMANDER, Seat.EAST)).is_commander_death is False
    assert resolve(pc(T.BOMB), pc(T.COMMANDER, Seat.EAST)).is_commander_death
    assert not resolve(pc(T.REGIMENT), pc(T.PLATOON, Seat.EAST)).is_commander_death


def test_apply_move_reveals_flag_when_commander_dies():
    board = Board()
    board.place_piece(Position(12, 8), pc(T.BOMB))
    board.place_piece(Position(11, 8), pc(T.COMMANDER, Seat.EAST))
    board.place_piece(Position(9, 16), pc(T.FLAG, Seat.EAST))
    outcome = board.apply_move(Position(12, 8), Position(11, 8))
    assert outcome.label == OUTCOME_BOTH_DIE
    assert {p.piece_type for p in outcome.dead} == {T.BOMB, T.COMMANDER}
    assert board.is_empty(Position(11, 8)) and board.is_empty(Position(12, 8))
    assert outcome.revealed_flag_seat == Seat.EAST
    assert board.peek(Position(9, 16)).revealed


def test_apply_move_winner_occupies_target():
    board = Board()
    board.place_piece(Position(12, 8), pc(T.DIVISION))
    board.place_piece(Position(11, 8), pc(T.PLATOON, Seat.EAST))
    outcome = board.apply_move(Position(12, 8), Position(11, 8))
    assert outcome.label == OUTCOME_ATTACKER_WINS
    assert board.peek(Position(11, 8)).piece_type == T.DIVISION
    assert board.is_empty(Position(12, 8))


def test_defender_holds_ground():
    board = Board()
    board.place_piece(Position(12, 8), pc(T.PLATOON))
    board.place_piece(Position(11, 8), pc(T.DIVISION, Seat.EAST))
    outcome = board.apply_move(Position(12, 8), Position(11, 8))
    assert outcome.label == OUTCOME_DEFENDER_WINS
    assert board.peek(Position(11, 8)).piece_type == T.DIVISION
    assert board.is_empty(Position(12, 8))


def test_bomb_on_flag_eliminates_flag_owner():
    board = Board()
    board.place_piece(Position(8, 16), pc(T.BOMB))
    board.place_piece(Position(9, 16), pc(T.FLAG, Seat.EAST))
    board.place_piece(Position(8, 13), pc(T.BRIGADE, Seat.EAST))
    outcome = board.apply_move(Position(8, 16), Position(9, 16))
    assert outcome.label == OUTCOME_BOTH_DIE
    assert board.find_flag(Seat.EAST) is None
    assert board.is_empty(Position(9, 16))
    assert Seat.EAST in check_game_over(board).newly_dead
