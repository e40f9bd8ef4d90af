#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
深度受限 minimax 搜索（四座位两队轮转，alpha-beta 剪枝）
- 与根节点同队的座位取大，敌队座位取小；无子可走的座位跳过并按困死计分
- 吃子走法排在前面以尽早收紧窗口
- 超时只在根节点候选之间检查，不在递归中途打断
"""
from __future__ import annotations

import time
import logging
from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from ai.memory import AIMemory
from game.board import Board, Move, simulate
from game.piece import Seat
from game.rules import enumerate_seat_moves, has_any_legal_move
from server.strategies.evaluation import Evaluator, estimated_value, threat_level
from server.strategies.personas import Persona

logger = logging.getLogger(__name__)

# 有限哨兵，避免无穷大泄漏到结果中
SCORE_FLOOR = -1e12
SCORE_CEIL = 1e12
# 有军旗却无子可走（困死）时的固定奖惩
TERMINAL_PENALTY = 10000.0
# 叶子节点统一使用中性人格
LEAF_PERSONA = Persona.BALANCED


@dataclass
class SearchConfig:
    depth: int = 2
    threat_depth: int = 3            # 己方军旗受威胁时加深
    threat_trigger: int = 3          # 威胁单位达到该值即加深
    time_limit_ms: int = 5000        # 仅在根节点候选之间检查
    use_alpha_beta: bool = True
    root_width: Optional[int] = None  # 根节点候选上限（None 为不限）
    node_width: Optional[int] = 12    # 内部节点候选上限（None 为不限）


@dataclass
class SearchResult:
    best_move: Optional[Move] = None
    score: Optional[float] = None
    explored_nodes: int = 0
    cutoff: bool = False
    depth: int = 0
    strategy: str = "minimax"
    category: str = ""               # 贪心选中走法的行为分类


class _Stats:
    def __init__(self):
        self.nodes = 0


def _fmt(move: Move) -> str:
    src, dst = move
    return f"({src.row},{src.col})->({dst.row},{dst.col})"


def order_moves(board: Board, moves: List[Move], memory: Optional[AIMemory], seat: Seat) -> List[Move]:
    """吃子走法优先（按目标估计价值从高到低），其余保持原顺序"""
    captures = []
    quiet = []
    for m in moves:
        target = board.peek(m[1])
        if target is not None and not target.seat.is_ally(seat):
            captures.append((estimated_value(target, memory, seat), m))
        else:
            quiet.append(m)
    captures.sort(key=lambda item: -item[0])
    return [m for _v, m in captures] + quiet


def _flagless(board: Board) -> Set[Seat]:
    return {s for s in Seat if board.find_flag(s) is None}


def _rotate(board: Board, mover: Seat) -> Tuple[Optional[Seat], List[Seat]]:
    """落子后按轮转找下一个可行棋座位。
    同时返回被困死的座位（仍有军旗却无子可走，从刚走完的一方算起、到下一个可行棋座位为止）。
    """
    flagless = _flagless(board)
    frozen: List[Seat] = []
    for step in range(4):
        s = Seat((mover + step) % 4)
        if s in flagless:
            continue
        if not has_any_legal_move(board, s):
            frozen.append(s)
        elif step > 0:
            return s, frozen
    return None, frozen


def _after_move(child: Board, mover: Seat, depth: int, alpha: float, beta: float,
                root: Seat, memory: Optional[AIMemory], config: SearchConfig,
                evaluator: Evaluator, stats: _Stats) -> float:
    nxt, frozen = _rotate(child, mover)
    if frozen or depth <= 0 or nxt is None:
        stats.nodes += 1
        static = evaluator.score(child, memory, root, LEAF_PERSONA)
        # 己队被困死扣分，敌队被困死加分
        own = sum(1 for s in frozen if s.team == root.team)
        return static + TERMINAL_PENALTY * (len(frozen) - 2 * own)
    return _minimax(child, nxt, depth, alpha, beta, root, memory, config, evaluator, stats)


def _minimax(board: Board, seat: Seat, depth: int, alpha: float, beta: float,
             root: Seat, memory: Optional[AIMemory], config: SearchConfig,
             evaluator: Evaluator, stats: _Stats) -> float:
    stats.nodes += 1
    maximizing = seat.team == root.team
    # _rotate 只会把有子可走的座位交给这里
    moves = order_moves(board, enumerate_seat_moves(board, seat), memory, seat)
    if config.node_width is not None:
        moves = moves[:config.node_width]

    best = SCORE_FLOOR if maximizing else SCORE_CEIL
    for move in moves:
        value = _after_move(simulate(board, move), seat, depth - 1, alpha, beta,
                            root, memory, config, evaluator, stats)
        if maximizing:
            best = max(best, value)
            alpha = max(alpha, best)
        else:
            best = min(best, value)
            beta = min(beta, best)
        if config.use_alpha_beta and beta <= alpha:
            break
    return best


def minimax_search(board: Board, seat: Seat, memory: Optional[AIMemory],
                   candidates: Optional[List[Move]] = None,
                   config: Optional[SearchConfig] = None,
                   bonus_provider=None, bonus_weight: float = 1.0,
                   evaluator: Optional[Evaluator] = None) -> SearchResult:
    """深度受限 minimax（alpha-beta），同队座位取大，敌队座位取小。
    根节点把当前最优总分（扣除该候选的外部加分）作为 alpha 传下去；
    被剪掉的候选返回值不超过 alpha，不会改变最终选择。外部加分在根节点叠加。
    """
    config = config or SearchConfig()
    evaluator = evaluator or Evaluator()
    moves = candidates if candidates is not None else enumerate_seat_moves(board, seat)
    result = SearchResult()
    if not moves:
        return result

    threat = threat_level(board, seat)
    depth = config.threat_depth if threat >= config.threat_trigger else config.depth
    result.depth = depth
    moves = order_moves(board, moves, memory, seat)
    if config.root_width is not None:
        moves = moves[:config.root_width]

    stats = _Stats()
    start = time.monotonic()
    best_total = SCORE_FLOOR
    for i, move in enumerate(moves):
        if i > 0 and (time.monotonic() - start) * 1000.0 > config.time_limit_ms:
            result.cutoff = True
            logger.info(f"[SEARCH] 时间用尽，已评估 {i}/{len(moves)} 个候选")
            break
        bonus = bonus_provider.get_move_bonus(board, move[0], move[1], seat) if bonus_provider else 0.0
        alpha = SCORE_FLOOR
        if config.use_alpha_beta and result.best_move is not None:
            alpha = best_total - bonus_weight * bonus
        value = _after_move(simulate(board, move), seat, depth - 1, alpha, SCORE_CEIL,
                            seat, memory, config, evaluator, stats)
        total = value + bonus_weight * bonus
        logger.debug(f"[SEARCH] {seat.label} {_fmt(move)} value={value:.1f} bonus={bonus:.1f}")
        if result.best_move is None or total > best_total:
            best_total = total
            result.best_move = move
    result.score = best_total if result.best_move is not None else None
    result.explored_nodes = stats.nodes
    if result.best_move is not None:
        logger.info(
            f"[SEARCH] {seat.label} depth={depth} threat={threat} nodes={stats.nodes} "
            f"best={_fmt(result.best_move)} score={best_total:.1f}"
        )
    return result
