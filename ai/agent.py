#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
四国军棋 AI 代理
- 每个座位一个代理，持有自己的棋子记忆（只用该座位能看到的信息）
- 作为对局观察者接收每一步的结果，更新记忆
- 选步：minimax 搜索；搜索没有结果时退回一步贪心
"""
import logging
from typing import Optional

from ai.memory import AIMemory
from game.board import Board, Move, MoveOutcome
from game.game_logic import GameObserver
from game.history import HistoryRecorder, MoveRecord
from game.piece import Seat
from game.rules import enumerate_seat_moves
from server.strategies.evaluation import Evaluator
from server.strategies.personas import Persona
from server.strategies.scoring import choose_greedy_move
from server.strategies.search import SearchConfig, SearchResult, minimax_search

logger = logging.getLogger(__name__)

STRATEGY_MINIMAX = "minimax"
STRATEGY_GREEDY = "greedy"
STRATEGIES = (STRATEGY_MINIMAX, STRATEGY_GREEDY)


class JunqiAgent(GameObserver):
    """
    单座位 AI：
    - 输入：当前棋盘、历史记录
    - 输出：一步 (from, to)，无子可走时返回 None
    """

    def __init__(self, seat: Seat, persona: Persona = Persona.BALANCED,
                 config: Optional[SearchConfig] = None,
                 strategy: str = STRATEGY_MINIMAX,
                 bonus_provider=None, bonus_weight: float = 1.0,
                 evaluator: Optional[Evaluator] = None) -> None:
        if strategy not in STRATEGIES:
            raise ValueError(f"未知策略: {strategy}")
        self.seat = seat
        self.persona = persona
        self.config = config or SearchConfig()
        self.strategy = strategy
        self.bonus_provider = bonus_provider
        self.bonus_weight = bonus_weight
        self.evaluator = evaluator or Evaluator()
        self.memory = AIMemory(seat)
        self.last_result: Optional[SearchResult] = None

    # ============ 观察者回调 ============
    def on_game_started(self, board: Board) -> None:
        self.memory.reset_from_board(board)

    def on_move_committed(self, record: MoveRecord, outcome: MoveOutcome, board: Board) -> None:
        self.memory.mark_moved(outcome.mover)
        if outcome.defender is not None and outcome.battle is not None:
            self.memory.process_battle(outcome.mover, outcome.defender, outcome.battle)
        self.memory.sync(board)

    # ============ 选步 ============
    def choose_move(self, board: Board, history: Optional[HistoryRecorder] = None) -> Optional[Move]:
        candidates = enumerate_seat_moves(board, self.seat)
        if not candidates:
            logger.info(f"[SEARCH] {self.seat.label} 无合法走法")
            self.last_result = None
            return None

        result: Optional[SearchResult] = None
        if self.strategy == STRATEGY_MINIMAX:
            result = minimax_search(
                board, self.seat, self.memory, candidates, self.config,
                self.bonus_provider, self.bonus_weight, self.evaluator,
            )
        if result is None or result.best_move is None:
            result = choose_greedy_move(
                board, self.seat, self.memory, self.persona, candidates, history,
                self.bonus_provider, self.bonus_weight, self.evaluator,
            )
        self.last_result = result
        return result.best_move
