import pytest

from ai.memory import AIMemory
from game.board import Board
from game.piece import PieceType as T, Seat
from server.strategies.evaluation import (
    FLAG_CAPTURE_BONUS,
    PIECE_VALUES,
    THREAT_UNIT,
    UNKNOWN_VALUE,
    Evaluator,
    estimated_value,
    threat_level,
)
from server.strategies.personas import Persona

S, E, N, W = Seat.SOUTH, Seat.EAST, Seat.NORTH, Seat.WEST


def base(put, extra=None):
    board = Board()
    for seat, rc in ((S, (16, 7)), (E, (9, 16)), (N, (0, 9)), (W, (7, 0))):
        put(board, rc, T.FLAG, seat)
    put(board, (12, 8), T.REGIMENT, S)
    for rc, pt, seat in extra or []:
        put(board, rc, pt, seat)
    return board


@pytest.mark.parametrize("rc,units", [((16, 8), 5), ((15, 8), 3), ((14, 8), 1), ((13, 9), 0)])
def test_threat_units_by_distance(put, rc, units):
    board = base(put, [(rc, T.PLATOON, E)])
    assert threat_level(board, S) == units


def test_flag_safety_dominates_material(put):
    evaluator = Evaluator()
    threatened = base(put, [((16, 8), T.PLATOON, E), ((12, 6), T.COMMANDER, S)])
    safe = base(put, [((3, 8), T.PLATOON, E)])
    # 多一个司令也抵不过军旗旁的一枚敌子
    assert evaluator.score(threatened, None, S) < evaluator.score(safe, None, S)


def test_material_dominates_position(put):
    evaluator = Evaluator()
    on_rail = Board()
    put(on_rail, (16, 7), T.FLAG, S)
    put(on_rail, (11, 6), T.REGIMENT, S)
    off_rail = Board()
    put(off_rail, (16, 7), T.FLAG, S)
    put(off_rail, (12, 8), T.BRIGADE, S)
    assert evaluator.score(off_rail, None, S) > evaluator.score(on_rail, None, S)


def test_threat_penalty_scales_with_defense_weight(put):
    evaluator = Evaluator()
    board = base(put, [((16, 8), T.PLATOON, E)])
    calm = base(put, [((3, 8), T.PLATOON, E)])
    gap = {
        persona: evaluator.score(calm, None, S, persona) - evaluator.score(board, None, S, persona)
        for persona in (Persona.DEFENSIVE, Persona.AGGRESSIVE)
    }
    assert gap[Persona.DEFENSIVE] > gap[Persona.AGGRESSIVE] > 5 * THREAT_UNIT * 0.4


def test_enemy_value_comes_from_memory(put):
    board = base(put)
    enemy = put(board, (3, 8), T.COMMANDER, E)
    # 未登记的棋子按未知价值估计，不看真实身份
    assert estimated_value(enemy, None, S) == UNKNOWN_VALUE
    assert estimated_value(enemy, AIMemory(S), S) == UNKNOWN_VALUE
    memory = AIMemory(S)
    memory.reset_from_board(board)
    assert estimated_value(enemy, memory, S) != PIECE_VALUES[T.COMMANDER]
    assert estimated_value(enemy.reveal(), memory, S) == PIECE_VALUES[T.COMMANDER]


def test_captured_enemy_flag_is_rewarded(put):
    evaluator = Evaluator()
    full = base(put)
    captured = base(put)
    captured.remove_piece(captured.find_flag(E))
    diff = evaluator.score(captured, None, S) - evaluator.score(full, None, S)
    # 少了一枚敌方棋子的估计价值，再加上夺旗奖励
    assert diff == pytest.approx(FLAG_CAPTURE_BONUS + UNKNOWN_VALUE)


def test_persona_lookup():
    assert Persona.from_name("aggressive") == Persona.AGGRESSIVE
    assert Persona.from_name("稳守") == Persona.DEFENSIVE
    assert Persona.from_name(" Balanced ") == Persona.BALANCED
    assert Persona.from_name("nonsense") is None
    assert Persona.from_name("") is None
    assert Persona.TEAMMATE_SUPPORT.weights.flag_capture == 2.0
