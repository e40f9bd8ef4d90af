#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
军棋棋子定义
- 四个座位按行棋顺序编号：南0 → 东1 → 北2 → 西3；0/2 与 1/3 各为一队。
- 棋子为不可变值对象：翻明通过 reveal() 生成新对象，棋盘只会用翻明后的副本替换原棋子。
"""

from enum import Enum, IntEnum
from dataclasses import dataclass, replace
from typing import Dict, List


class PieceType(Enum):
    """棋子类型枚举"""
    COMMANDER = "司令"      # 司令 - 最大
    GENERAL = "军长"       # 军长
    DIVISION = "师长"      # 师长
    BRIGADE = "旅长"       # 旅长
    REGIMENT = "团长"      # 团长
    BATTALION = "营长"     # 营长
    COMPANY = "连长"       # 连长
    PLATOON = "排长"       # 排长
    ENGINEER = "工兵"      # 工兵 - 最小，但可以挖地雷
    BOMB = "炸弹"          # 炸弹 - 同归于尽
    MINE = "地雷"          # 地雷 - 只有工兵可挖
    FLAG = "军旗"          # 军旗 - 被攻击即被夺


class Seat(IntEnum):
    """座位枚举（数值即行棋顺序）"""
    SOUTH = 0
    EAST = 1
    NORTH = 2
    WEST = 3

    @property
    def teammate(self) -> "Seat":
        return Seat((self.value + 2) % 4)

    @property
    def team(self) -> int:
        return self.value % 2

    @property
    def label(self) -> str:
        return self.name.lower()

    def is_ally(self, other: "Seat") -> bool:
        return self.team == other.team


# 炸弹与地雷使用哨兵等级，不参与普通比大小
BOMB_RANK = 99
MINE_RANK = 88
MIN_MOVABLE_RANK = 2
MAX_RANK = 10

RANKS: Dict[PieceType, int] = {
    PieceType.COMMANDER: 10,
    PieceType.GENERAL: 9,
    PieceType.DIVISION: 8,
    PieceType.BRIGADE: 7,
    PieceType.REGIMENT: 6,
    PieceType.BATTALION: 5,
    PieceType.COMPANY: 4,
    PieceType.PLATOON: 3,
    PieceType.ENGINEER: 2,
    PieceType.FLAG: 0,
    PieceType.BOMB: BOMB_RANK,
    PieceType.MINE: MINE_RANK,
}

# 普通等级 -> 棋子类型（仅可比大小的棋子）
RANK_TO_TYPE: Dict[int, PieceType] = {
    rank: pt for pt, rank in RANKS.items() if MIN_MOVABLE_RANK <= rank <= MAX_RANK
}

IMMOBILE_TYPES = frozenset({PieceType.MINE, PieceType.FLAG})


@dataclass(frozen=True)
class Piece:
    """棋子类"""
    piece_id: str
    piece_type: PieceType
    seat: Seat
    revealed: bool = False  # 是否已被任一方看到真实身份

    def __str__(self):
        return f"{self.seat.label}的{self.piece_type.value}"

    @property
    def rank(self) -> int:
        return RANKS[self.piece_type]

    def reveal(self) -> "Piece":
        """返回翻明后的副本（已翻明则返回自身）"""
        if self.revealed:
            return self
        return replace(self, revealed=True)

    def can_move(self) -> bool:
        """判断棋子是否可以移动"""
        # 地雷和军旗不能移动
        return self.piece_type not in IMMOBILE_TYPES

    def is_engineer(self) -> bool:
        return self.piece_type == PieceType.ENGINEER

    def is_bomb(self) -> bool:
        return self.piece_type == PieceType.BOMB

    def is_mine(self) -> bool:
        return self.piece_type == PieceType.MINE

    def is_flag(self) -> bool:
        return self.piece_type == PieceType.FLAG

    def is_commander(self) -> bool:
        return self.piece_type == PieceType.COMMANDER


# 每个玩家的初始棋子配置
INITIAL_PIECES: Dict[PieceType, int] = {
    PieceType.COMMANDER: 1,
    PieceType.GENERAL: 1,
    PieceType.DIVISION: 2,
    PieceType.BRIGADE: 2,
    PieceType.REGIMENT: 2,
    PieceType.BATTALION: 2,
    PieceType.COMPANY: 3,
    PieceType.PLATOON: 3,
    PieceType.ENGINEER: 3,
    PieceType.BOMB: 2,
    PieceType.MINE: 3,
    PieceType.FLAG: 1,
}


def create_player_pieces(seat: Seat) -> List[Piece]:
    """为指定座位创建初始棋子，ID 形如 south_001"""
    pieces: List[Piece] = []
    idx = 1
    for piece_type, count in INITIAL_PIECES.items():
        for _ in range(count):
            pieces.append(Piece(f"{seat.label}_{idx:03d}", piece_type, seat))
            idx += 1
    return pieces
