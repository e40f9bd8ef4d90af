import pytest

from ai.memory import AIMemory
from game.combat import resolve
from game.piece import PieceType as T, Seat

S, E, N = Seat.SOUTH, Seat.EAST, Seat.NORTH


@pytest.fixture
def scene(board, put):
    """南方视角：东方一枚后排未动的棋子 x（真实身份为司令）"""
    pieces = {
        "regiment": put(board, (12, 8), T.REGIMENT, S),
        "division": put(board, (12, 6), T.DIVISION, S),
        "engineer": put(board, (15, 7), T.ENGINEER, S),
        "brigade": put(board, (13, 6), T.BRIGADE, S),
        "x": put(board, (8, 15), T.COMMANDER, E),
        "mine": put(board, (7, 16), T.MINE, E),
        "platoon": put(board, (10, 12), T.PLATOON, E),
    }
    memory = AIMemory(S)
    memory.reset_from_board(board)
    return memory, pieces


def battle(memory, attacker, defender):
    memory.process_battle(attacker, defender, resolve(attacker, defender))


def test_own_pieces_known_enemy_unknown(scene):
    memory, p = scene
    assert memory.estimate(p["regiment"].piece_id).known_type == T.REGIMENT
    est = memory.estimate(p["x"].piece_id)
    assert est.known_type is None
    assert est.possible_types == frozenset(T)
    assert est.in_back_rows


def test_narrowing_is_monotonic(scene):
    memory, p = scene
    x = p["x"].piece_id
    battle(memory, p["regiment"], p["x"])
    first = memory.estimate(x)
    assert first.possible_types == {T.BRIGADE, T.DIVISION, T.GENERAL, T.COMMANDER, T.MINE}
    assert (first.min_rank, first.max_rank) == (7, 10)

    battle(memory, p["division"], p["x"])
    second = memory.estimate(x)
    assert second.possible_types <= first.possible_types
    assert second.possible_types == {T.GENERAL, T.COMMANDER, T.MINE}
    assert second.min_rank >= first.min_rank and second.max_rank <= first.max_rank
    assert second.probe_count == 2


def test_lost_attack_on_static_back_row_marks_mine(scene):
    memory, p = scene
    battle(memory, p["regiment"], p["x"])
    assert memory.estimate(p["x"].piece_id).confirmed_mine
    memory.mark_moved(p["x"])
    est = memory.estimate(p["x"].piece_id)
    assert not est.confirmed_mine
    assert not est.mine_possible and not est.flag_possible


def test_memory_never_reads_hidden_identity(scene):
    memory, p = scene
    battle(memory, p["regiment"], p["mine"])
    est = memory.estimate(p["mine"].piece_id)
    assert est.known_type is None
    assert est.mine_possible and est.confirmed_mine


def test_engineer_probe(scene):
    memory, p = scene
    battle(memory, p["engineer"], p["platoon"])
    est = memory.estimate(p["platoon"].piece_id)
    assert est.was_probed_by_engineer
    assert not est.mine_possible and not est.bomb_possible
    assert est.min_rank == 3
    # 工兵阵亡不算疑似地雷
    assert not est.confirmed_mine


def test_winning_attack_caps_defender(scene):
    memory, p = scene
    battle(memory, p["brigade"], p["platoon"])
    est = memory.estimate(p["platoon"].piece_id)
    assert est.max_rank == 6
    assert not est.bomb_possible and not est.flag_possible


def test_defeated_our_rank_tracks_team(board, put):
    south_reg = put(board, (12, 8), T.REGIMENT, S)
    south_bri = put(board, (12, 6), T.BRIGADE, S)
    north_cmd = put(board, (5, 8), T.COMMANDER, N, revealed=True)
    north_hidden = put(board, (4, 8), T.GENERAL, N)
    east_a = put(board, (11, 8), T.DIVISION, E)
    east_b = put(board, (11, 6), T.BRIGADE, E)
    east_c = put(board, (6, 8), T.BOMB, E)
    east_d = put(board, (3, 8), T.COMMANDER, E)
    memory = AIMemory(S)
    memory.reset_from_board(board)

    battle(memory, south_reg, east_a)
    assert memory.estimate(east_a.piece_id).defeated_our_rank == 6
    # 同归于尽也记战绩
    battle(memory, south_bri, east_b)
    assert memory.estimate(east_b.piece_id).defeated_our_rank == 7
    # 队友的已翻明棋子也算
    battle(memory, east_c, north_cmd)
    assert memory.estimate(east_c.piece_id).defeated_our_rank == 10
    # 队友未翻明的棋子身份未知，不记
    battle(memory, east_d, north_hidden)
    assert memory.estimate(east_d.piece_id).defeated_our_rank == 0


def test_sync_picks_up_revealed_pieces(board, put, scene):
    memory, p = scene
    board.reveal_at(board.find_piece(p["platoon"].piece_id))
    memory.sync(board)
    assert memory.estimate(p["platoon"].piece_id).known_type == T.PLATOON


def test_round_trip(scene):
    memory, p = scene
    battle(memory, p["regiment"], p["x"])
    battle(memory, p["engineer"], p["platoon"])
    restored = AIMemory.from_dict(memory.to_dict())
    assert restored.observer == memory.observer
    for pid in memory.memories:
        assert restored.estimate(pid) == memory.estimate(pid)


def test_unknown_piece_id_has_no_estimate(scene):
    memory, _p = scene
    assert memory.estimate("nobody_999") is None
