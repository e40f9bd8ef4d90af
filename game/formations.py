#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
布阵：名阵模板、布阵规则校验与按风格的随机布阵
- 模板统一以南方玩家的本地坐标（6行x5列）书写：第1行靠九宫格，第6行为大本营所在排；列1在最左。
- 其他阵营布阵时通过拓扑的本地/全局坐标转换自动旋转。
- 网格字符：司/令→司令，军→军长，师→师长，旅→旅长，团→团长，营→营长，连→连长，排→排长，
  兵→工兵，炸/弹→炸弹，雷→地雷，旗→军旗；"…"或"·"表示空位（行营）。
"""

import random
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .board import Board
from .coords import Position
from .piece import INITIAL_PIECES, Piece, PieceType, Seat
from .topology import Topology

CHAR_TO_PIECE: Dict[str, PieceType] = {
    '司': PieceType.COMMANDER,
    '令': PieceType.COMMANDER,
    '军': PieceType.GENERAL,
    '师': PieceType.DIVISION,
    '旅': PieceType.BRIGADE,
    '团': PieceType.REGIMENT,
    '营': PieceType.BATTALION,
    '连': PieceType.COMPANY,
    '排': PieceType.PLATOON,
    '兵': PieceType.ENGINEER,
    '炸': PieceType.BOMB,
    '弹': PieceType.BOMB,
    '雷': PieceType.MINE,
    '旗': PieceType.FLAG,
}

_EMPTY_CHARS = ('·', ' ', '…', '.')

FORMATIONS: Dict[str, List[str]] = {
    # 十大名阵（南方本地坐标 6×5）
    '河东狮吼': [
        '师兵连排师',
        '旅…连…炸',
        '炸营…团旅',
        '军…兵…连',
        '司兵营雷排',
        '团排雷旗雷',
    ],
    '午夜风铃': [
        '连旅司兵团',
        '师…炸…军',
        '团排…连兵',
        '排…营…营',
        '雷雷连师炸',
        '雷旗旅排兵',
    ],
    '飞花逐月': [
        '连司军兵师',
        '师…连…旅',
        '团弹…弹团',
        '营…排…营',
        '旅兵兵排雷',
        '雷旗雷排连',
    ],
    '飘香一剑': [
        '师兵连旅师',
        '团…连…炸',
        '团营…炸营',
        '司…兵…连',
        '军兵旅雷排',
        '排排雷旗雷',
    ],
    '于无声处': [
        '师兵军排营',
        '团…兵…旅',
        '师弹…连司',
        '弹…排…连',
        '营雷连雷团',
        '旅旗雷排兵',
    ],
    '乌龙摆尾': [
        '营兵团排连',
        '师…兵…司',
        '旅连…军排',
        '连…兵…团',
        '弹旅师营雷',
        '弹排雷旗雷',
    ],
    '三节阵': [
        '团排军兵令',
        '连…兵…团',
        '师弹…兵连',
        '排…连…旅',
        '雷营师弹旅',
        '雷旗雷排营',
    ],
    '狼来了': [
        '团兵旅师连',
        '营…兵…军',
        '司兵…弹师',
        '排…弹…团',
        '营旅连雷连',
        '排排雷旗雷',
    ],
    '雾山重剑': [
        '连排兵兵团',
        '师…连…司',
        '团营…营师',
        '炸…兵…旅',
        '军连旅雷炸',
        '雷旗雷排排',
    ],
}


class SetupArchetype(Enum):
    """随机布阵风格"""
    BALANCED = "均衡"
    DEFENSIVE_TURTLE = "龟缩防守"
    AGGRESSIVE_BLITZ = "前压闪击"
    DECEPTIVE = "虚实迷惑"


def list_formations() -> List[str]:
    return [n for n, g in FORMATIONS.items() if len(g) == 6]


def formation_placements(topology: Topology, seat: Seat, name: str) -> List[Tuple[Position, PieceType]]:
    """名阵 -> [(全局坐标, 棋子类型)]；名阵不存在时抛出 KeyError"""
    grid = FORMATIONS[name]
    out: List[Tuple[Position, PieceType]] = []
    for r_idx, row in enumerate(grid, start=1):
        for c_idx, ch in enumerate(row.ljust(topology.width, '·'), start=1):
            if ch in _EMPTY_CHARS:
                continue
            pt = CHAR_TO_PIECE.get(ch)
            if pt is None:
                continue
            out.append((topology.to_global(seat, r_idx, c_idx), pt))
    return out


def place_setup(board: Board, seat: Seat, placements: List[Tuple[Position, PieceType]]) -> List[Piece]:
    """清空该方棋子后按本地坐标顺序摆放并分配 ID（south_001 起）"""
    board.remove_seat_pieces(seat)
    topo = board.topology
    ordered = sorted(placements, key=lambda item: topo.to_local(seat, item[0]))
    pieces: List[Piece] = []
    for idx, (pos, pt) in enumerate(ordered, start=1):
        piece = Piece(f"{seat.label}_{idx:03d}", pt, seat)
        board.place_piece(pos, piece)
        pieces.append(piece)
    return pieces


def apply_formation(board: Board, seat: Seat, name: str) -> List[Piece]:
    return place_setup(board, seat, formation_placements(board.topology, seat, name))


def can_stand_at(topology: Topology, piece_type: PieceType, seat: Seat, pos: Position) -> bool:
    """布阵规则：本方区域、非行营；军旗只能在大本营，地雷只能在后两排，炸弹不能在第一排"""
    if not topology.exists(pos) or topology.zone_owner(pos) != seat or topology.is_campsite(pos):
        return False
    if piece_type == PieceType.FLAG:
        return topology.is_headquarters(pos)
    if piece_type == PieceType.MINE:
        return topology.is_back_rows(seat, pos)
    if piece_type == PieceType.BOMB:
        return not topology.is_front_row(seat, pos)
    return True


def validate_setup(board: Board, seat: Seat) -> List[str]:
    """返回违规说明列表；空列表表示布阵合法"""
    problems: List[str] = []
    counts: Dict[PieceType, int] = {pt: 0 for pt in PieceType}
    for pos, piece in board.pieces_of(seat):
        counts[piece.piece_type] += 1
        if not can_stand_at(board.topology, piece.piece_type, seat, pos):
            problems.append(f"{piece.piece_type.value} 不能放在 {pos}")
    for pt, expected in INITIAL_PIECES.items():
        if counts[pt] != expected:
            problems.append(f"{pt.value} 数量为 {counts[pt]}，应为 {expected}")
    return problems


def generate_smart_setup(board: Board, seat: Seat,
                         archetype: SetupArchetype = SetupArchetype.BALANCED,
                         rng: Optional[random.Random] = None) -> List[Piece]:
    """按风格随机布阵：
    1. 军旗随机放进一个大本营，另一个大本营放地雷（迷惑风格或 20% 概率改放排长）；
    2. 剩余地雷放后两排；炸弹不进第一排（龟缩风格优先放在军旗附近）；
    3. 司令、军长优先放前/中排（闪击风格优先放第一排）；其余棋子随机填空。
    """
    rng = rng or random.Random()
    topo = board.topology
    depth = topo.depth
    hq_slots = topo.headquarters_of(seat)
    other_slots = [p for p in topo.setup_slots(seat) if p not in hq_slots]
    local_row = {p: topo.to_local(seat, p)[0] for p in other_slots}
    mine_slots = [p for p in other_slots if local_row[p] >= depth - 1]
    front_slots = [p for p in other_slots if local_row[p] == 1]
    middle_slots = [p for p in other_slots if 1 < local_row[p] < depth - 1]

    pool: List[PieceType] = []
    for pt, count in INITIAL_PIECES.items():
        pool.extend([pt] * count)
    placements: List[Tuple[Position, PieceType]] = []
    used: set = set()

    def put(pos: Position, pt: PieceType):
        placements.append((pos, pt))
        used.add(pos)
        pool.remove(pt)

    flag_slot = rng.choice(hq_slots)
    put(flag_slot, PieceType.FLAG)
    other_hq = [p for p in hq_slots if p != flag_slot]
    use_platoon = archetype == SetupArchetype.DECEPTIVE or rng.random() < 0.2
    for slot in other_hq:
        put(slot, PieceType.PLATOON if use_platoon else PieceType.MINE)

    free_mine_slots = [p for p in mine_slots if p not in used]
    rng.shuffle(free_mine_slots)
    while PieceType.MINE in pool and free_mine_slots:
        put(free_mine_slots.pop(), PieceType.MINE)

    bomb_slots = [p for p in middle_slots + mine_slots if p not in used]
    if archetype == SetupArchetype.DEFENSIVE_TURTLE:
        bomb_slots.sort(key=lambda p: p.manhattan(flag_slot))
    else:
        rng.shuffle(bomb_slots)
    while PieceType.BOMB in pool and bomb_slots:
        put(bomb_slots.pop(0), PieceType.BOMB)

    if archetype == SetupArchetype.AGGRESSIVE_BLITZ:
        lead_slots = [p for p in front_slots if p not in used]
    else:
        lead_slots = [p for p in front_slots + middle_slots if p not in used]
    rng.shuffle(lead_slots)
    for pt in (PieceType.COMMANDER, PieceType.GENERAL):
        if lead_slots:
            put(lead_slots.pop(), pt)

    rest = [p for p in other_slots if p not in used]
    rng.shuffle(rest)
    remaining = sorted(pool, key=lambda pt: pt.name)
    rng.shuffle(remaining)
    for pos, pt in zip(rest, remaining):
        placements.append((pos, pt))
    return place_setup(board, seat, placements)
