#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
棋子记忆（隐藏信息推断）
- 每个观察方（座位）持有一份独立记忆：己方棋子身份已知，其余棋子以「等级区间 + 可能类型集合」描述。
- 只根据观察方真正能看到的信息推断：己方棋子、已翻明棋子、战斗结果、是否移动过。
- 所有更新只会收窄区间与集合，从不放宽；信息矛盾时保持原状。
- 「疑似地雷」是启发式标记：非工兵进攻后排未动过的棋子阵亡即打标；该棋子之后若移动则撤销标记。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional, Set

from game.board import Board
from game.combat import BattleOutcome
from game.piece import (
    IMMOBILE_TYPES,
    MAX_RANK,
    MIN_MOVABLE_RANK,
    RANKS,
    Piece,
    PieceType,
    Seat,
)

_RANKED_TYPES = frozenset(pt for pt, r in RANKS.items() if MIN_MOVABLE_RANK <= r <= MAX_RANK)


def _ranked_above(rank: int) -> Set[PieceType]:
    return {pt for pt in _RANKED_TYPES if RANKS[pt] > rank}


def _ranked_below(rank: int) -> Set[PieceType]:
    return {pt for pt in _RANKED_TYPES if RANKS[pt] < rank}


@dataclass
class PieceMemory:
    piece_id: str
    owner: Seat
    min_rank: int = MIN_MOVABLE_RANK
    max_rank: int = MAX_RANK
    possible: Set[PieceType] = field(default_factory=lambda: set(PieceType))
    confirmed_mine: bool = False
    in_back_rows: bool = False
    has_moved: bool = False
    was_probed_by_engineer: bool = False
    probe_count: int = 0
    defeated_our_rank: int = 0


@dataclass(frozen=True)
class PieceEstimate:
    """对外只读的估计结果"""
    piece_id: str
    min_rank: int
    max_rank: int
    possible_types: FrozenSet[PieceType]
    confirmed_mine: bool
    defeated_our_rank: int
    probe_count: int
    has_moved: bool
    in_back_rows: bool
    was_probed_by_engineer: bool

    @property
    def known_type(self) -> Optional[PieceType]:
        if len(self.possible_types) == 1:
            return next(iter(self.possible_types))
        return None

    @property
    def bomb_possible(self) -> bool:
        return PieceType.BOMB in self.possible_types

    @property
    def mine_possible(self) -> bool:
        return PieceType.MINE in self.possible_types

    @property
    def flag_possible(self) -> bool:
        return PieceType.FLAG in self.possible_types

    @property
    def mid_rank(self) -> float:
        return (self.min_rank + self.max_rank) / 2.0


class AIMemory:
    """单个观察方的棋子记忆"""

    def __init__(self, observer: Seat):
        self.observer = observer
        self.memories: Dict[str, PieceMemory] = {}

    # ============ 初始化 ============
    def reset(self, pieces: Iterable[Piece]):
        self.memories.clear()
        for p in pieces:
            mem = PieceMemory(p.piece_id, p.seat)
            self.memories[p.piece_id] = mem
            if self._knows(p):
                self._collapse(mem, p.piece_type)

    def reset_from_board(self, board: Board):
        self.reset(p for _pos, p in board.iter_pieces())
        self.mark_back_rows(board)

    def _knows(self, piece: Piece) -> bool:
        return piece.seat == self.observer or piece.revealed

    def _known_type(self, piece: Piece) -> Optional[PieceType]:
        if self._knows(piece):
            return piece.piece_type
        mem = self.memories.get(piece.piece_id)
        if mem is not None and len(mem.possible) == 1:
            return next(iter(mem.possible))
        return None

    def _mem(self, piece: Piece) -> PieceMemory:
        mem = self.memories.get(piece.piece_id)
        if mem is None:
            mem = PieceMemory(piece.piece_id, piece.seat)
            self.memories[piece.piece_id] = mem
            if self._knows(piece):
                self._collapse(mem, piece.piece_type)
        return mem

    # ============ 收窄工具 ============
    @staticmethod
    def _collapse(mem: PieceMemory, piece_type: PieceType):
        if piece_type not in mem.possible:
            return
        mem.possible = {piece_type}
        rank = RANKS[piece_type]
        if MIN_MOVABLE_RANK <= rank <= MAX_RANK:
            mem.min_rank = mem.max_rank = rank
        mem.confirmed_mine = mem.confirmed_mine and piece_type == PieceType.MINE

    @staticmethod
    def _exclude(mem: PieceMemory, types: Iterable[PieceType]):
        remaining = mem.possible - set(types)
        if remaining:
            mem.possible = remaining
        AIMemory._tighten(mem)

    @staticmethod
    def _restrict(mem: PieceMemory, types: Iterable[PieceType]):
        remaining = mem.possible & set(types)
        if remaining:
            mem.possible = remaining
        AIMemory._tighten(mem)

    @staticmethod
    def _tighten(mem: PieceMemory):
        """按可能类型集合反推等级区间"""
        ranks = [RANKS[pt] for pt in mem.possible if pt in _RANKED_TYPES]
        if ranks:
            lo = max(mem.min_rank, min(ranks))
            hi = min(mem.max_rank, max(ranks))
            if lo <= hi:
                mem.min_rank, mem.max_rank = lo, hi

    # ============ 更新 ============
    def mark_moved(self, piece: Piece):
        """移动过的棋子不可能是地雷或军旗"""
        mem = self._mem(piece)
        mem.has_moved = True
        mem.confirmed_mine = False
        self._exclude(mem, IMMOBILE_TYPES)

    def mark_back_rows(self, board: Board):
        topo = board.topology
        for pos, piece in board.iter_pieces():
            self._mem(piece).in_back_rows = topo.is_back_rows(piece.seat, pos)

    def reveal(self, piece: Piece):
        self._collapse(self._mem(piece), piece.piece_type)

    def sync(self, board: Board):
        """同步棋盘上已翻明的棋子与后排标记"""
        for _pos, piece in board.iter_pieces():
            if self._knows(piece):
                self.reveal(piece)
        self.mark_back_rows(board)

    def process_battle(self, attacker: Piece, defender: Piece, outcome: BattleOutcome):
        att = self._mem(attacker)
        dfn = self._mem(defender)
        att_type = self._known_type(attacker)
        def_type = self._known_type(defender)

        dfn.probe_count += 1
        if att_type == PieceType.ENGINEER:
            dfn.was_probed_by_engineer = True
        self.mark_moved(attacker)

        if outcome.is_flag_capture:
            self._collapse(dfn, PieceType.FLAG)
            return

        if outcome.attacker_survives:
            # 炸弹不会存活；防守方既然输了就不是炸弹
            self._exclude(att, {PieceType.BOMB})
            self._exclude(dfn, {PieceType.BOMB, PieceType.FLAG})
            if def_type == PieceType.MINE:
                self._collapse(att, PieceType.ENGINEER)
            elif def_type is not None:
                self._restrict(att, _ranked_above(RANKS[def_type]))
            if att_type is not None:
                allowed = _ranked_below(RANKS[att_type])
                if att_type == PieceType.ENGINEER:
                    allowed.add(PieceType.MINE)
                self._restrict(dfn, allowed)
            self._record_defeat(winner=attacker, loser=defender, loser_type=def_type)

        elif outcome.defender_survives:
            self._exclude(dfn, {PieceType.BOMB, PieceType.FLAG})
            self._exclude(att, {PieceType.BOMB})
            if att_type is not None:
                allowed = _ranked_above(RANKS[att_type])
                if att_type != PieceType.ENGINEER:
                    allowed.add(PieceType.MINE)
                self._restrict(dfn, allowed)
            if def_type == PieceType.MINE:
                self._restrict(att, _RANKED_TYPES - {PieceType.ENGINEER})
            elif def_type is not None:
                self._restrict(att, _ranked_below(RANKS[def_type]))
            if (att_type is not None and att_type != PieceType.ENGINEER
                    and dfn.in_back_rows and not dfn.has_moved and PieceType.MINE in dfn.possible):
                dfn.confirmed_mine = True
            self._record_defeat(winner=defender, loser=attacker, loser_type=att_type)

        else:
            # 同归于尽：等级相同，或其中一方是炸弹
            if att_type is not None and att_type != PieceType.BOMB:
                self._restrict(dfn, {att_type, PieceType.BOMB})
            if def_type is not None and def_type != PieceType.BOMB:
                self._restrict(att, {def_type, PieceType.BOMB})
            self._record_defeat(winner=attacker, loser=defender, loser_type=def_type)
            self._record_defeat(winner=defender, loser=attacker, loser_type=att_type)

    def _record_defeat(self, winner: Piece, loser: Piece, loser_type: Optional[PieceType]):
        """敌方棋子击败（或换掉）我方已知等级的棋子时记录其战绩"""
        if loser_type not in _RANKED_TYPES:
            return
        if loser.seat.team != self.observer.team or winner.seat.team == self.observer.team:
            return
        mem = self._mem(winner)
        mem.defeated_our_rank = max(mem.defeated_our_rank, RANKS[loser_type])

    # ============ 查询 ============
    def estimate(self, piece_id: str) -> Optional[PieceEstimate]:
        mem = self.memories.get(piece_id)
        if mem is None:
            return None
        return PieceEstimate(
            piece_id=mem.piece_id,
            min_rank=mem.min_rank,
            max_rank=mem.max_rank,
            possible_types=frozenset(mem.possible),
            confirmed_mine=mem.confirmed_mine,
            defeated_our_rank=mem.defeated_our_rank,
            probe_count=mem.probe_count,
            has_moved=mem.has_moved,
            in_back_rows=mem.in_back_rows,
            was_probed_by_engineer=mem.was_probed_by_engineer,
        )

    def estimate_piece(self, piece: Piece) -> PieceEstimate:
        """按棋子取估计；未登记的棋子按观察方视角临时登记"""
        self._mem(piece)
        return self.estimate(piece.piece_id)

    # ============ 持久化 ============
    def to_dict(self) -> Dict[str, Any]:
        return {
            "observer": self.observer.label,
            "pieces": {
                pid: {
                    "owner": m.owner.label,
                    "min_rank": m.min_rank,
                    "max_rank": m.max_rank,
                    "possible": sorted(pt.name for pt in m.possible),
                    "confirmed_mine": m.confirmed_mine,
                    "in_back_rows": m.in_back_rows,
                    "has_moved": m.has_moved,
                    "was_probed_by_engineer": m.was_probed_by_engineer,
                    "probe_count": m.probe_count,
                    "defeated_our_rank": m.defeated_our_rank,
                }
                for pid, m in self.memories.items()
            },
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AIMemory":
        memory = cls(Seat[data["observer"].upper()])
        for pid, d in data.get("pieces", {}).items():
            memory.memories[pid] = PieceMemory(
                piece_id=pid,
                owner=Seat[d["owner"].upper()],
                min_rank=int(d["min_rank"]),
                max_rank=int(d["max_rank"]),
                possible={PieceType[name] for name in d["possible"]},
                confirmed_mine=bool(d.get("confirmed_mine", False)),
                in_back_rows=bool(d.get("in_back_rows", False)),
                has_moved=bool(d.get("has_moved", False)),
                was_probed_by_engineer=bool(d.get("was_probed_by_engineer", False)),
                probe_count=int(d.get("probe_count", 0)),
                defeated_our_rank=int(d.get("defeated_our_rank", 0)),
            )
        return memory
