#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
外部协作方接口
- MoveBonusProvider：学习得到的走法加分（价值网络 / Q 表等），搜索只把它当作不透明的加性项。
- OpponentStatsRecorder：终局时收集局面快照与各方军旗位置，供对手习惯统计使用；核心不会读回这些数据。
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

from game.board import Board
from game.coords import Position
from game.game_logic import GameObserver
from game.piece import Seat


class MoveBonusProvider(Protocol):
    def get_move_bonus(self, board: Board, from_pos: Position, to_pos: Position, seat: Seat) -> float:
        ...


class NullBonusProvider:
    """不提供任何加分"""

    def get_move_bonus(self, board: Board, from_pos: Position, to_pos: Position, seat: Seat) -> float:
        return 0.0


class TableBonusProvider:
    """按 (座位, 起点, 终点) 查表的加分，便于离线训练结果接入与测试"""

    def __init__(self, table: Optional[Dict[Tuple[Seat, Tuple[int, int], Tuple[int, int]], float]] = None):
        self.table = dict(table or {})

    def get_move_bonus(self, board: Board, from_pos: Position, to_pos: Position, seat: Seat) -> float:
        return float(self.table.get((seat, from_pos.to_tuple(), to_pos.to_tuple()), 0.0))


@dataclass
class FinishedGame:
    winner_team: Optional[int]
    flag_positions: Dict[str, Tuple[int, int]]
    pieces: List[Dict[str, Any]] = field(default_factory=list)


class OpponentStatsRecorder(GameObserver):
    """记录开局军旗位置与终局快照；sink 为可选的外部消费者"""

    def __init__(self, sink: Optional[Callable[[FinishedGame], None]] = None):
        self.sink = sink
        self.games: List[FinishedGame] = []
        self._flags: Dict[str, Tuple[int, int]] = {}

    def on_game_started(self, board: Board) -> None:
        self._flags = {}
        for seat in Seat:
            pos = board.find_flag(seat)
            if pos is not None:
                self._flags[seat.label] = pos.to_tuple()

    def on_game_finished(self, board: Board, winner_team: Optional[int]) -> None:
        pieces = [
            {"row": pos.row, "col": pos.col, "seat": p.seat.label, "type": p.piece_type.name}
            for pos, p in board.iter_pieces()
        ]
        game = FinishedGame(winner_team, dict(self._flags), pieces)
        self.games.append(game)
        if self.sink is not None:
            self.sink(game)
