#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
棋局历史记录模块：记录每一步走子与战斗结果，供回放、重复检测与外部统计使用。
坐标同时保存全局坐标与移动方阵营的本地坐标。
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any
import json
import datetime

from .coords import Position


@dataclass
class MoveRecord:
    """单步走子与战斗结果记录"""
    turn: int                      # 回合序号（从1开始）
    seat: str                      # 走子方阵营（south/east/north/west）
    piece_id: str                  # 移动的棋子ID（如 south_017）
    from_pos: tuple[int, int]      # 起点（全局坐标）
    to_pos: tuple[int, int]        # 终点（全局坐标）
    from_local: tuple[int, int]    # 起点（移动方本地坐标）
    to_local: tuple[int, int]      # 终点（移动方本地坐标）
    outcome: str                   # "move" | "attack_attacker_wins" | "attack_defender_wins" | "attack_both_die"
    defender_piece_id: Optional[str] = None
    dead_piece_ids: List[str] = field(default_factory=list)
    is_flag_capture: bool = False
    is_commander_death: bool = False
    ts: str = field(default_factory=lambda: datetime.datetime.now().isoformat(timespec='seconds'))

    @property
    def src(self) -> Position:
        return Position(*self.from_pos)

    @property
    def dst(self) -> Position:
        return Position(*self.to_pos)

    @property
    def is_attack(self) -> bool:
        return self.outcome != "move"

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "turn": self.turn,
            "ts": self.ts,
            "seat": self.seat,
            "piece_id": self.piece_id,
            "from": list(self.from_pos),
            "to": list(self.to_pos),
        }
        # 仅战斗时附加结果字段
        if self.is_attack:
            d["outcome"] = self.outcome
            d["defender_piece_id"] = self.defender_piece_id
            d["dead_piece_ids"] = list(self.dead_piece_ids)
            if self.is_flag_capture:
                d["flag_capture"] = True
            if self.is_commander_death:
                d["commander_death"] = True
        return d


class HistoryRecorder:
    """棋局历史记录器"""
    def __init__(self) -> None:
        self.records: List[MoveRecord] = []

    def __len__(self) -> int:
        return len(self.records)

    def add_record(self, record: MoveRecord) -> None:
        self.records.append(record)

    def clear(self) -> None:
        self.records.clear()

    def last(self) -> Optional[MoveRecord]:
        return self.records[-1] if self.records else None

    def recent_for_piece(self, piece_id: str, limit: int = 8) -> List[MoveRecord]:
        """某棋子最近的若干步（新到旧）"""
        out: List[MoveRecord] = []
        for r in reversed(self.records):
            if r.piece_id == piece_id:
                out.append(r)
                if len(out) >= limit:
                    break
        return out

    def visit_count(self, piece_id: str, pos: Position, limit: int = 8) -> int:
        """某棋子最近几步里到达过 pos 的次数（含出发点）"""
        count = 0
        key = pos.to_tuple()
        for r in self.recent_for_piece(piece_id, limit):
            if r.to_pos == key or r.from_pos == key:
                count += 1
        return count

    def to_list(self) -> List[Dict[str, Any]]:
        return [r.to_dict() for r in self.records]

    def to_json(self, ensure_ascii: bool = False) -> str:
        return json.dumps(self.to_list(), ensure_ascii=ensure_ascii)
