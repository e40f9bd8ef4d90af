#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
四国军棋棋盘模块
- 棋盘 = 共享只读拓扑 + 占位表 {Position: Piece}。
- 棋子是不可变值对象，clone() 只复制占位表，模拟分支之间互不影响。
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .combat import BattleOutcome, resolve
from .coords import Position
from .piece import Piece, Seat
from .topology import STANDARD_TOPOLOGY, BoardTopologyError, CellKind, Topology

Move = Tuple[Position, Position]


@dataclass
class MoveOutcome:
    """一次落子在棋盘上的结果"""
    mover: Piece
    defender: Optional[Piece] = None
    battle: Optional[BattleOutcome] = None
    dead: List[Piece] = field(default_factory=list)
    revealed_flag_seat: Optional[Seat] = None

    @property
    def is_attack(self) -> bool:
        return self.defender is not None

    @property
    def label(self) -> str:
        return self.battle.label if self.battle else "move"


class Board:
    """四国军棋棋盘（占位快照）"""

    def __init__(self, topology: Topology = STANDARD_TOPOLOGY):
        self.topology = topology
        self.pieces: Dict[Position, Piece] = {}

    # ============ 基础操作 ============
    def clone(self) -> "Board":
        b = Board(self.topology)
        b.pieces = dict(self.pieces)
        return b

    def _check(self, pos: Position):
        if not self.topology.exists(pos):
            raise BoardTopologyError(f"位置 {pos} 不在棋盘上")

    def get_piece(self, pos: Position) -> Optional[Piece]:
        self._check(pos)
        return self.pieces.get(pos)

    def peek(self, pos: Position) -> Optional[Piece]:
        """不校验位置的读取（供规则判定使用，越界即为空）"""
        return self.pieces.get(pos)

    def is_empty(self, pos: Position) -> bool:
        return pos not in self.pieces

    def place_piece(self, pos: Position, piece: Piece) -> bool:
        self._check(pos)
        if pos in self.pieces:
            return False
        self.pieces[pos] = piece
        return True

    def remove_piece(self, pos: Position) -> Optional[Piece]:
        self._check(pos)
        return self.pieces.pop(pos, None)

    def clear(self):
        self.pieces.clear()

    def cell_kind(self, pos: Position) -> CellKind:
        return self.topology.classify(pos)

    # ============ 查询 ============
    def iter_pieces(self) -> Iterator[Tuple[Position, Piece]]:
        return iter(list(self.pieces.items()))

    def pieces_of(self, seat: Seat) -> List[Tuple[Position, Piece]]:
        return [(pos, p) for pos, p in self.pieces.items() if p.seat == seat]

    def find_piece(self, piece_id: str) -> Optional[Position]:
        for pos, p in self.pieces.items():
            if p.piece_id == piece_id:
                return pos
        return None

    def find_flag(self, seat: Seat) -> Optional[Position]:
        for pos, p in self.pieces.items():
            if p.seat == seat and p.is_flag():
                return pos
        return None

    def has_pieces(self, seat: Seat) -> bool:
        return any(p.seat == seat for p in self.pieces.values())

    def occupancy_key(self) -> Tuple:
        """确定性的局面键（用于重复检测与日志）"""
        return tuple(sorted(
            (pos.row, pos.col, p.piece_id, p.revealed) for pos, p in self.pieces.items()
        ))

    # ============ 翻明与清场 ============
    def reveal_at(self, pos: Position):
        p = self.pieces.get(pos)
        if p is not None and not p.revealed:
            self.pieces[pos] = p.reveal()

    def reveal_flag(self, seat: Seat) -> Optional[Position]:
        pos = self.find_flag(seat)
        if pos is not None:
            self.reveal_at(pos)
        return pos

    def reveal_all(self):
        for pos in list(self.pieces.keys()):
            self.reveal_at(pos)

    def remove_seat_pieces(self, seat: Seat) -> List[Piece]:
        removed: List[Piece] = []
        for pos in [pos for pos, p in self.pieces.items() if p.seat == seat]:
            removed.append(self.pieces.pop(pos))
        return removed

    # ============ 落子 ============
    def apply_move(self, src: Position, dst: Position) -> MoveOutcome:
        """执行一步（不做合法性校验，调用方负责先调用 rules.is_valid_move）"""
        mover = self.get_piece(src)
        if mover is None:
            raise BoardTopologyError(f"起点 {src} 没有棋子")
        defender = self.get_piece(dst)
        del self.pieces[src]
        if defender is None:
            self.pieces[dst] = mover
            return MoveOutcome(mover)

        battle = resolve(mover, defender)
        outcome = MoveOutcome(mover, defender, battle)
        if battle.attacker_survives:
            self.pieces[dst] = mover
            outcome.dead.append(defender)
        elif battle.defender_survives:
            outcome.dead.append(mover)
        else:
            del self.pieces[dst]
            outcome.dead.extend([mover, defender])
        if battle.is_commander_death:
            # 司令阵亡：亮出该方军旗
            for dead in outcome.dead:
                if dead.is_commander():
                    if self.reveal_flag(dead.seat) is not None:
                        outcome.revealed_flag_seat = dead.seat
        return outcome


def simulate(board: Board, move: Move) -> Board:
    """在副本上执行一步并返回副本（搜索专用）"""
    b2 = board.clone()
    b2.apply_move(move[0], move[1])
    return b2
