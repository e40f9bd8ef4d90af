#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
四国军棋贪心一步评分模块
每个候选走法：模拟落子 -> 评估器打分（带人格权重）-> 叠加一组情境加减分。
情境规则只依赖观察方记忆中的公开推断，不读取未翻明棋子的真实身份。
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ai.memory import AIMemory, PieceEstimate
from game.board import Board, Move, simulate
from game.combat import resolve
from game.coords import Position
from game.history import HistoryRecorder
from game.piece import Piece, PieceType, Seat
from game.rules import enumerate_seat_moves
from server.strategies.behaviors import classify_move
from server.strategies.evaluation import (
    PIECE_VALUES,
    Evaluator,
    estimated_value,
    flag_threats,
)
from server.strategies.personas import Persona
from server.strategies.search import SearchResult

logger = logging.getLogger(__name__)

# 情境规则的量级：安全类 >> 军旗攻防 >> 推进与诈术
MINE_PENALTY = 50000
KNOWN_LOSS_PENALTY = 40000
STATIC_BACKROW_PENALTY = 30000
UNDO_PENALTY = 20000
REPEAT_PROBE_PENALTY = 5000
REVISIT_PENALTY = 5000
ENGINEER_FRONT_PENALTY = 8000
ENGINEER_REPROBE_PENALTY = 1000
FLAG_CAPTURE_REWARD = 50000
HQ_PROBE_REWARD = 8000
INTERCEPT_SURE = 30000
INTERCEPT = 15000
RETURN_DEFEND = 3000
ABANDON_GUARD = 4000
TEAMMATE_RESCUE = 3000
ENDGAME_MULTIPLIER = 2.5
ENDGAME_ADVANCE = 2000
BOMB_ON_COMMANDER = 500
BLUFF_BONUS = 200
ADVANCE_STEP = 150
NEAR_HQ_BONUS = 300
NEAR_HQ_RADIUS = 3

BLUFF_MAX_RANK = 4                 # 连长及以下
HIGH_VALUE_RANK = 8                # 师长及以上不去碰后排静止子


@dataclass
class ScoredMove:
    idx: int
    from_pos: Position
    to_pos: Position
    piece_id: Optional[str]
    score: float
    category: str = ""
    tactics: List[str] = field(default_factory=list)
    reason: str = ""


def _estimate(memory: Optional[AIMemory], target: Piece) -> Optional[PieceEstimate]:
    if memory is None or target.revealed:
        return None
    return memory.estimate(target.piece_id)


def _possible_types(target: Piece, est: Optional[PieceEstimate]) -> List[PieceType]:
    if target.revealed:
        return [target.piece_type]
    if est is None:
        return list(PieceType)
    if est.confirmed_mine:
        return [PieceType.MINE]
    return sorted(est.possible_types, key=lambda t: t.name)


def win_probability(mover: Piece, target: Piece, est: Optional[PieceEstimate]) -> Tuple[float, float, float]:
    """按可能身份均匀加权的 (胜, 同归, 负) 概率"""
    types = _possible_types(target, est)
    win = tie = lose = 0
    for pt in types:
        outcome = resolve(mover, Piece("?", pt, target.seat))
        if outcome.attacker_survives:
            win += 1
        elif outcome.defender_survives:
            lose += 1
        else:
            tie += 1
    n = float(len(types)) or 1.0
    return win / n, tie / n, lose / n


def _enemy_seats(seat: Seat) -> List[Seat]:
    return [s for s in Seat if not s.is_ally(seat)]


def _eliminated(board: Board, s: Seat) -> bool:
    return board.find_flag(s) is None or not board.has_pieces(s)


def _nearest_enemy_hq(board: Board, seat: Seat, pos: Position) -> Optional[int]:
    best = None
    for s in _enemy_seats(seat):
        if _eliminated(board, s):
            continue
        for hq in board.topology.headquarters_of(s):
            d = pos.manhattan(hq)
            if best is None or d < best:
                best = d
    return best


# ============ 情境规则（每条返回 (加减分, 标签)） ============

def _rule_mine_safety(board, seat, mover, target, est, src, dst):
    if target is None or mover.is_engineer() or mover.is_bomb():
        return 0.0, None
    if est is not None and est.confirmed_mine:
        return -MINE_PENALTY, "avoid_mine"
    if (est is not None and mover.rank >= HIGH_VALUE_RANK and not est.has_moved
            and est.in_back_rows and est.mine_possible):
        return -STATIC_BACKROW_PENALTY, "avoid_static_backrow"
    return 0.0, None


def _rule_known_loss(board, seat, mover, target, est, src, dst):
    if target is None or est is None or mover.is_bomb():
        return 0.0, None
    if est.defeated_our_rank >= mover.rank:
        return -KNOWN_LOSS_PENALTY, "known_stronger"
    return 0.0, None


def _rule_repeat_probe(board, seat, mover, target, est, src, dst):
    if est is not None and est.known_type is None and est.probe_count >= 2:
        return -REPEAT_PROBE_PENALTY, "repeat_probe"
    return 0.0, None


def _rule_engineer(board, seat, mover, target, est, src, dst):
    if target is None or not mover.is_engineer() or target.revealed:
        return 0.0, None
    if board.topology.is_front_row(target.seat, dst):
        return -ENGINEER_FRONT_PENALTY, "engineer_front"
    if est is not None and est.was_probed_by_engineer:
        return -ENGINEER_REPROBE_PENALTY, "engineer_reprobe"
    return 0.0, None


def _rule_bluff(board, seat, mover, target, est, src, dst):
    if target is not None or mover.revealed or mover.rank > BLUFF_MAX_RANK:
        return 0.0, None
    before = _nearest_enemy_hq(board, seat, src)
    after = _nearest_enemy_hq(board, seat, dst)
    if before is not None and after is not None and after < before:
        return BLUFF_BONUS, "bluff_advance"
    return 0.0, None


def _rule_flag_defense(board, seat, mover, target, est, src, dst):
    threats = flag_threats(board, seat)
    if not threats:
        return 0.0, None
    flag_pos = board.find_flag(seat)
    if target is not None and any(pos == dst for pos, _p, _d in threats):
        win, _tie, _lose = win_probability(mover, target, est)
        if win >= 1.0 or mover.is_bomb():
            return INTERCEPT_SURE, "intercept_sure"
        return INTERCEPT, "intercept"
    if flag_pos is None:
        return 0.0, None
    d_src = src.manhattan(flag_pos)
    d_dst = dst.manhattan(flag_pos)
    if d_dst < d_src and not mover.is_engineer():
        return RETURN_DEFEND, "return_defend"
    if d_src <= 2 < d_dst:
        return -ABANDON_GUARD, "abandon_guard"
    return 0.0, None


def _rule_teammate_rescue(board, seat, mover, target, est, src, dst):
    if target is None:
        return 0.0, None
    threats = flag_threats(board, seat.teammate)
    if any(pos == dst for pos, _p, _d in threats):
        return TEAMMATE_RESCUE, "teammate_rescue"
    return 0.0, None


def _rule_repetition(history, mover, src, dst):
    if history is None:
        return 0.0, None
    recent = history.recent_for_piece(mover.piece_id, limit=1)
    if recent and recent[0].from_pos == dst.to_tuple() and recent[0].to_pos == src.to_tuple():
        return -UNDO_PENALTY, "undo"
    visits = history.visit_count(mover.piece_id, dst)
    if visits:
        return -REVISIT_PENALTY * visits, "revisit"
    return 0.0, None


def _endgame(board: Board, seat: Seat) -> bool:
    """至少一个敌方已出局且本队两家都在"""
    if _eliminated(board, seat) or _eliminated(board, seat.teammate):
        return False
    return any(_eliminated(board, s) for s in _enemy_seats(seat))


def _rule_bomb(board, seat, mover, target, est, src, dst):
    if target is None or not mover.is_bomb():
        return 0.0, None
    if target.revealed and target.is_commander():
        return BOMB_ON_COMMANDER, "bomb_commander"
    if est is not None and est.known_type is PieceType.COMMANDER:
        return BOMB_ON_COMMANDER, "bomb_commander"
    return 0.0, None


def _rule_flag_capture(board, seat, mover, target, est, src, dst, persona):
    if target is None:
        return 0.0, None
    fc = persona.weights.flag_capture
    if (target.revealed and target.is_flag()) or (est is not None and est.known_type is PieceType.FLAG):
        return FLAG_CAPTURE_REWARD * fc, "capture_flag"
    if board.topology.hq_owner(dst) == target.seat and (est is None or est.flag_possible):
        return HQ_PROBE_REWARD * fc, "hq_probe"
    return 0.0, None


def _rule_advance(board, seat, mover, target, est, src, dst, persona, endgame):
    if not mover.can_move():
        return 0.0, None
    before = _nearest_enemy_hq(board, seat, src)
    after = _nearest_enemy_hq(board, seat, dst)
    if before is None or after is None or after >= before:
        return 0.0, None
    w = persona.weights
    bonus = ADVANCE_STEP * w.attack
    if after <= NEAR_HQ_RADIUS:
        bonus += NEAR_HQ_BONUS * w.flag_capture
    if endgame:
        bonus += ENDGAME_ADVANCE
    return bonus, "advance"


def attack_expectation(mover: Piece, target: Piece, memory: Optional[AIMemory], seat: Seat) -> float:
    est = _estimate(memory, target)
    win, tie, lose = win_probability(mover, target, est)
    gain = estimated_value(target, memory, seat)
    cost = float(PIECE_VALUES[mover.piece_type])
    return win * gain + tie * (gain - cost) - lose * cost


def score_moves(board: Board, seat: Seat, memory: Optional[AIMemory],
                persona: Persona = Persona.BALANCED,
                candidates: Optional[List[Move]] = None,
                history: Optional[HistoryRecorder] = None,
                bonus_provider=None, bonus_weight: float = 1.0,
                evaluator: Optional[Evaluator] = None) -> List[ScoredMove]:
    """为每个候选打分，按候选原顺序返回"""
    evaluator = evaluator or Evaluator()
    moves = candidates if candidates is not None else enumerate_seat_moves(board, seat)
    endgame = _endgame(board, seat)
    out: List[ScoredMove] = []
    for idx, (src, dst) in enumerate(moves):
        mover = board.peek(src)
        if mover is None:
            continue
        target = board.peek(dst)
        if target is not None and target.seat.is_ally(seat):
            target = None
        est = _estimate(memory, target) if target is not None else None

        score = evaluator.score(simulate(board, (src, dst)), memory, seat, persona)
        tactics: List[str] = []
        for delta, tag in (
            _rule_mine_safety(board, seat, mover, target, est, src, dst),
            _rule_known_loss(board, seat, mover, target, est, src, dst),
            _rule_repeat_probe(board, seat, mover, target, est, src, dst),
            _rule_engineer(board, seat, mover, target, est, src, dst),
            _rule_bluff(board, seat, mover, target, est, src, dst),
            _rule_flag_defense(board, seat, mover, target, est, src, dst),
            _rule_teammate_rescue(board, seat, mover, target, est, src, dst),
            _rule_repetition(history, mover, src, dst),
            _rule_bomb(board, seat, mover, target, est, src, dst),
            _rule_flag_capture(board, seat, mover, target, est, src, dst, persona),
            _rule_advance(board, seat, mover, target, est, src, dst, persona, endgame),
        ):
            if tag:
                score += delta
                tactics.append(tag)
        if target is not None:
            ev = attack_expectation(mover, target, memory, seat) * persona.weights.attack
            if endgame:
                ev *= ENDGAME_MULTIPLIER
            score += ev
            tactics.append("attack_win" if ev > 0 else "attack_risky")
        if bonus_provider is not None:
            score += bonus_weight * bonus_provider.get_move_bonus(board, src, dst, seat)

        out.append(ScoredMove(
            idx=idx,
            from_pos=src,
            to_pos=dst,
            piece_id=mover.piece_id,
            score=float(score),
            tactics=tactics,
            reason=",".join(tactics[:3]),
        ))
    return out


def choose_greedy_move(board: Board, seat: Seat, memory: Optional[AIMemory],
                       persona: Persona = Persona.BALANCED,
                       candidates: Optional[List[Move]] = None,
                       history: Optional[HistoryRecorder] = None,
                       bonus_provider=None, bonus_weight: float = 1.0,
                       evaluator: Optional[Evaluator] = None) -> SearchResult:
    """一步贪心：取分数最高的候选，同分保留先出现者"""
    scored = score_moves(board, seat, memory, persona, candidates, history,
                         bonus_provider, bonus_weight, evaluator)
    result = SearchResult(strategy="greedy", depth=1, explored_nodes=len(scored))
    best: Optional[ScoredMove] = None
    for m in scored:
        if best is None or m.score > best.score:
            best = m
    if best is not None:
        # 行为分类要模拟一步并扫描敌方攻击，只给选中的走法算
        best.category = classify_move(board, seat, best.from_pos, best.to_pos)
        result.best_move = (best.from_pos, best.to_pos)
        result.score = best.score
        result.category = best.category
        logger.info(
            f"[SEARCH] {seat.label} greedy best=({best.from_pos.row},{best.from_pos.col})->"
            f"({best.to_pos.row},{best.to_pos.col}) score={best.score:.1f} {best.category} [{best.reason}]"
        )
    return result
