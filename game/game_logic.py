#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
四国军棋游戏逻辑控制器
- 管理布阵、轮转、落子提交、历史记录与终局判定。
- 落子提交顺序：合法性校验 → 战斗结算/棋盘更新 → 历史 → 终局判定与清场 → 通知观察者 → 轮转。
"""

import logging
import random
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from .board import Board, Move, MoveOutcome
from .coords import Position
from .formations import (
    SetupArchetype,
    apply_formation as fm_apply,
    generate_smart_setup,
    list_formations,
    validate_setup,
)
from .history import HistoryRecorder, MoveRecord
from .piece import Seat
from .rules import enumerate_seat_moves, get_possible_moves, is_valid_move
from .termination import check_game_over, next_active_seat, team_strength
from .topology import STANDARD_TOPOLOGY, Topology

logger = logging.getLogger(__name__)


class GameState(Enum):
    """游戏状态"""
    SETUP = "布局阶段"
    PLAYING = "游戏中"
    FINISHED = "游戏结束"


class GameObserver:
    """对局观察者：默认实现为空操作，子类按需覆盖"""

    def on_game_started(self, board: Board) -> None:
        pass

    def on_move_committed(self, record: MoveRecord, outcome: MoveOutcome, board: Board) -> None:
        pass

    def on_game_finished(self, board: Board, winner_team: Optional[int]) -> None:
        pass


class GameLogic:
    """游戏逻辑控制器"""

    def __init__(self, topology: Topology = STANDARD_TOPOLOGY,
                 max_moves_after_death: Optional[int] = None,
                 rng: Optional[random.Random] = None):
        self.board = Board(topology)
        self.game_state = GameState.SETUP
        self.current_seat = Seat.SOUTH
        self.dead_seats: Set[Seat] = set()
        self.history = HistoryRecorder()
        self.observers: List[GameObserver] = []
        self.winner_team: Optional[int] = None
        self.finish_reason: str = ""
        self.setup_names: Dict[Seat, str] = {}
        # 首个座位出局后的步数上限（None 表示不限），超限按双方兵力判胜负
        self.max_moves_after_death = max_moves_after_death
        self._moves_since_first_death: Optional[int] = None
        self.rng = rng or random.Random()

    def add_observer(self, observer: GameObserver) -> None:
        self.observers.append(observer)

    # ============ 布阵 ============
    def apply_formation(self, seat: Seat, name: str) -> bool:
        """按指定名阵布阵"""
        if self.game_state != GameState.SETUP:
            return False
        if name not in list_formations():
            return False
        fm_apply(self.board, seat, name)
        self.setup_names[seat] = name
        return True

    def apply_smart_setup(self, seat: Seat, archetype: SetupArchetype = SetupArchetype.BALANCED) -> bool:
        if self.game_state != GameState.SETUP:
            return False
        generate_smart_setup(self.board, seat, archetype, self.rng)
        self.setup_names[seat] = archetype.name
        return True

    def auto_layout_player(self, seat: Seat) -> bool:
        """为玩家自动布局（随机名阵）"""
        names = list_formations()
        if not names:
            return self.apply_smart_setup(seat)
        return self.apply_formation(seat, self.rng.choice(names))

    def auto_layout_all_players(self) -> None:
        for seat in Seat:
            self.auto_layout_player(seat)

    def setup_problems(self) -> Dict[Seat, List[str]]:
        return {seat: validate_setup(self.board, seat) for seat in Seat}

    def start_game(self, first_seat: Optional[Seat] = None) -> bool:
        """开始游戏：四方布阵都合法才能开始"""
        if self.game_state != GameState.SETUP:
            return False
        problems = {s: p for s, p in self.setup_problems().items() if p}
        if problems:
            for seat, items in problems.items():
                logger.warning(f"[GAME] {seat.label} 布阵不合法: {'; '.join(items)}")
            return False
        self.game_state = GameState.PLAYING
        self.current_seat = first_seat if first_seat is not None else Seat.SOUTH
        self.dead_seats.clear()
        self.history.clear()
        self.winner_team = None
        self.finish_reason = ""
        self._moves_since_first_death = None
        logger.info(f"[GAME] 对局开始，先手 {self.current_seat.label}，布阵 {self.setup_names}")
        for ob in self.observers:
            ob.on_game_started(self.board)
        return True

    def reset_game(self):
        self.board = Board(self.board.topology)
        self.game_state = GameState.SETUP
        self.current_seat = Seat.SOUTH
        self.dead_seats.clear()
        self.history.clear()
        self.winner_team = None
        self.finish_reason = ""
        self.setup_names.clear()
        self._moves_since_first_death = None

    # ============ 查询 ============
    def alive_seats(self) -> List[Seat]:
        return [s for s in Seat if s not in self.dead_seats]

    def legal_moves_for(self, seat: Seat) -> List[Move]:
        if self.game_state != GameState.PLAYING or seat in self.dead_seats:
            return []
        return enumerate_seat_moves(self.board, seat)

    def possible_moves(self, pos: Position) -> List[Position]:
        """当前行棋方某棋子的可达目标"""
        piece = self.board.peek(pos)
        if self.game_state != GameState.PLAYING or piece is None or piece.seat != self.current_seat:
            return []
        return get_possible_moves(self.board, pos)

    # ============ 行棋 ============
    def move_piece(self, from_pos: Position, to_pos: Position) -> Optional[MoveRecord]:
        """提交一步；非法返回 None，棋局状态不变"""
        if self.game_state != GameState.PLAYING:
            return None
        piece = self.board.peek(from_pos)
        if piece is None or piece.seat != self.current_seat:
            return None
        if not is_valid_move(self.board, from_pos, to_pos, piece):
            logger.info(f"[GAME] 拒绝非法走子 {piece.piece_id} {from_pos}->{to_pos}")
            return None

        topo = self.board.topology
        outcome = self.board.apply_move(from_pos, to_pos)
        battle = outcome.battle
        record = MoveRecord(
            turn=len(self.history) + 1,
            seat=piece.seat.label,
            piece_id=piece.piece_id,
            from_pos=from_pos.to_tuple(),
            to_pos=to_pos.to_tuple(),
            from_local=topo.to_local(piece.seat, from_pos),
            to_local=topo.to_local(piece.seat, to_pos),
            outcome=outcome.label,
            defender_piece_id=outcome.defender.piece_id if outcome.defender else None,
            dead_piece_ids=[p.piece_id for p in outcome.dead],
            is_flag_capture=bool(battle and battle.is_flag_capture),
            is_commander_death=bool(battle and battle.is_commander_death),
        )
        self.history.add_record(record)
        if outcome.is_attack:
            logger.info(f"[GAME] 第{record.turn}步 {piece.piece_id} {from_pos}->{to_pos} {record.outcome}")
        if outcome.revealed_flag_seat is not None:
            logger.info(f"[GAME] {outcome.revealed_flag_seat.label} 司令阵亡，军旗亮出")

        result = check_game_over(self.board, self.dead_seats)
        self._mark_dead(result.newly_dead, "失去军旗或无子可走")
        for ob in self.observers:
            ob.on_move_committed(record, outcome, self.board)
        if result.is_over:
            self._finish(result.winner_team, "全队被消灭")
        elif not self._check_move_cap():
            self._advance_turn()
        return record

    def _mark_dead(self, seats: List[Seat], reason: str):
        for seat in seats:
            if seat in self.dead_seats:
                continue
            self.dead_seats.add(seat)
            removed = self.board.remove_seat_pieces(seat)
            logger.info(f"[GAME] {seat.label} 出局（{reason}），移除 {len(removed)} 枚棋子")
            if self._moves_since_first_death is None:
                self._moves_since_first_death = 0

    def _check_move_cap(self) -> bool:
        """首个座位出局后累计步数达到上限时按兵力判定胜负"""
        if self._moves_since_first_death is None or self.max_moves_after_death is None:
            return False
        self._moves_since_first_death += 1
        if self._moves_since_first_death < self.max_moves_after_death:
            return False
        strength = team_strength(self.board)
        if strength[0] == strength[1]:
            winner = None
        else:
            winner = 0 if strength[0] > strength[1] else 1
        self._finish(winner, f"步数上限判定 {strength}")
        return True

    def _advance_turn(self):
        nxt = next_active_seat(self.board, self.current_seat, self.dead_seats)
        if nxt in self.dead_seats:
            self._finish(None, "无人可行棋")
            return
        self.current_seat = nxt

    def _finish(self, winner_team: Optional[int], reason: str):
        self.game_state = GameState.FINISHED
        self.winner_team = winner_team
        self.finish_reason = reason
        self.board.reveal_all()
        logger.info(f"[GAME] 对局结束：{reason}，胜方队伍 {winner_team}")
        for ob in self.observers:
            ob.on_game_finished(self.board, winner_team)

    def skip_turn(self) -> bool:
        """跳过当前回合"""
        if self.game_state != GameState.PLAYING:
            return False
        self._advance_turn()
        return True

    def surrender(self, seat: Optional[Seat] = None) -> bool:
        """投降：清除该方所有棋子并标记出局"""
        if self.game_state != GameState.PLAYING:
            return False
        loser = self.current_seat if seat is None else seat
        self._mark_dead([loser], "投降")
        result = check_game_over(self.board, self.dead_seats)
        self._mark_dead(result.newly_dead, "失去军旗或无子可走")
        if result.is_over:
            self._finish(result.winner_team, "全队被消灭")
        elif loser == self.current_seat:
            self._advance_turn()
        return True

    # ============ 导出 ============
    def snapshot(self, viewer: Optional[Seat] = None) -> Dict[str, Any]:
        """只读局面快照；指定 viewer 时隐藏其看不到的敌方棋子身份"""
        pieces = []
        for pos, p in sorted(self.board.iter_pieces(), key=lambda item: (item[0].row, item[0].col)):
            visible = viewer is None or p.revealed or p.seat == viewer or self.game_state == GameState.FINISHED
            pieces.append({
                "row": pos.row,
                "col": pos.col,
                "piece_id": p.piece_id,
                "seat": p.seat.label,
                "type": p.piece_type.name if visible else None,
                "revealed": p.revealed,
            })
        return {
            "state": self.game_state.name,
            "current_seat": self.current_seat.label,
            "dead_seats": sorted(s.label for s in self.dead_seats),
            "winner_team": self.winner_team,
            "turn": len(self.history),
            "pieces": pieces,
        }
