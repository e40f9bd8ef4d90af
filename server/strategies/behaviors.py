#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
基础走棋行为判定模块：将单步走棋唯一分类为 防守/进攻/试探 三类。
分类优先级冲突处理：进攻 > 试探 > 防守。
"""
from __future__ import annotations
from typing import Dict, Any, List

from game.board import Board, simulate
from game.coords import Position
from game.piece import Seat
from game.rules import is_valid_move


CATEGORY_DEFEND = "defend"
CATEGORY_ATTACK = "attack"
CATEGORY_PROBE = "probe"


def classify_move(board: Board, seat: Seat, from_pos: Position, to_pos: Position) -> str:
    """返回走法所属类别：'attack'|'probe'|'defend'（互斥，唯一分类）。"""
    return str(classify_move_ex(board, seat, from_pos, to_pos)["category"])


def classify_move_ex(board: Board, seat: Seat, from_pos: Position, to_pos: Position) -> Dict[str, Any]:
    """返回包含类别与判定信号的结构化结果。
    signals:
      - eat_piece: 目标格存在敌方棋子
      - enter_enemy_area_non_camp: 落子点位于敌方阵地且不是行营
      - enter_center: 落子点在中央九宫
      - exposed_after_move: 本方未翻明的棋子走完后可被敌方一步攻击
    """
    signals: Dict[str, bool] = {
        "eat_piece": False,
        "enter_enemy_area_non_camp": False,
        "enter_center": False,
        "exposed_after_move": False,
    }
    topo = board.topology
    mover = board.peek(from_pos)
    if mover is None:
        return {"category": CATEGORY_DEFEND, "signals": signals}

    target = board.peek(to_pos)
    if target is not None and not target.seat.is_ally(seat):
        signals["eat_piece"] = True

    owner = topo.zone_owner(to_pos)
    if owner is not None and not owner.is_ally(seat) and not topo.is_campsite(to_pos):
        signals["enter_enemy_area_non_camp"] = True

    if topo.is_hub(to_pos):
        signals["enter_center"] = True

    if target is None and not mover.revealed and not topo.is_campsite(to_pos):
        after = simulate(board, (from_pos, to_pos))
        signals["exposed_after_move"] = bool(attackers_of(after, seat, to_pos))

    if signals["eat_piece"] or signals["enter_enemy_area_non_camp"]:
        category = CATEGORY_ATTACK
    elif signals["enter_center"] or signals["exposed_after_move"]:
        category = CATEGORY_PROBE
    else:
        category = CATEGORY_DEFEND
    return {"category": category, "signals": signals}


def attackers_of(board: Board, seat: Seat, pos: Position) -> List[Position]:
    """能一步攻击到 pos 的敌方棋子位置（行营内不可被攻击）"""
    if board.topology.is_campsite(pos):
        return []
    out: List[Position] = []
    for epos, enemy in board.iter_pieces():
        if enemy.seat.is_ally(seat) or not enemy.can_move():
            continue
        if is_valid_move(board, epos, pos, enemy):
            out.append(epos)
    return out
