#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
局面评估（手工启发式）
score = 己方子力 + 队友子力/2 - 敌方估计子力 + 位置分*机动 + 护旗分*防守 - 军旗威胁*防守 + 夺旗奖励*夺旗

数值是可调常量，真正需要保持的是优先级：军旗安全 > 子力 > 位置细节。
敌方与队友的未翻明棋子只通过记忆估计，不读取真实身份。
"""

from typing import List, Optional, Tuple

from ai.memory import AIMemory
from game.board import Board
from game.coords import Position
from game.piece import RANK_TO_TYPE, Piece, PieceType, Seat
from .personas import Persona

PIECE_VALUES = {
    PieceType.COMMANDER: 1000,
    PieceType.GENERAL: 500,
    PieceType.DIVISION: 250,
    PieceType.BRIGADE: 120,
    PieceType.REGIMENT: 60,
    PieceType.BATTALION: 40,
    PieceType.COMPANY: 20,
    PieceType.PLATOON: 10,
    PieceType.ENGINEER: 60,   # 能挖雷、能走铁路拐弯
    PieceType.BOMB: 400,
    PieceType.MINE: 100,
    PieceType.FLAG: 10000,
}

UNKNOWN_VALUE = 50
BOMB_SUSPICION = 100
TEAMMATE_FACTOR = 0.5

RAIL_BONUS = 10
CAMP_BONUS = 15

GUARD_RADIUS = 2
GUARD_BONUS = {
    PieceType.MINE: 50,
    PieceType.BOMB: 40,
    PieceType.COMMANDER: 60,
    PieceType.GENERAL: 60,
    PieceType.DIVISION: 60,
}

# 一个威胁单位的扣分；紧贴军旗的一枚敌子（5 单位）重于一个司令
THREAT_UNIT = 300
THREAT_RADIUS = 3

# 敌方军旗已被夺走时的奖励（乘夺旗权重）；队友军旗被夺按一半扣除
FLAG_CAPTURE_BONUS = 5000


def rank_value(rank: int) -> float:
    pt = RANK_TO_TYPE.get(rank)
    return float(PIECE_VALUES[pt]) if pt else float(UNKNOWN_VALUE)


def estimated_value(piece: Piece, memory: Optional[AIMemory], seat: Seat) -> float:
    """观察方视角下的棋子价值"""
    if piece.seat == seat or piece.revealed:
        return float(PIECE_VALUES[piece.piece_type])
    if memory is None:
        return float(UNKNOWN_VALUE)
    est = memory.estimate(piece.piece_id)
    if est is None:
        return float(UNKNOWN_VALUE)
    if est.known_type is not None:
        return float(PIECE_VALUES[est.known_type])
    if est.confirmed_mine:
        return float(PIECE_VALUES[PieceType.MINE])
    value = (rank_value(est.min_rank) + rank_value(est.max_rank)) / 2.0
    if est.bomb_possible:
        value += BOMB_SUSPICION
    return value


def threat_units(distance: int) -> int:
    if distance <= 1:
        return 5
    if distance <= 2:
        return 3
    if distance <= THREAT_RADIUS:
        return 1
    return 0


def flag_threats(board: Board, seat: Seat) -> List[Tuple[Position, Piece, int]]:
    """己方军旗附近（曼哈顿距离 <= 3）的敌方棋子：[(位置, 棋子, 距离)]，由近到远"""
    flag_pos = board.find_flag(seat)
    if flag_pos is None:
        return []
    out = []
    for pos, p in board.iter_pieces():
        if p.seat.is_ally(seat):
            continue
        d = pos.manhattan(flag_pos)
        if d <= THREAT_RADIUS:
            out.append((pos, p, d))
    out.sort(key=lambda item: (item[2], item[0].row, item[0].col))
    return out


def threat_level(board: Board, seat: Seat) -> int:
    return sum(threat_units(d) for _pos, _p, d in flag_threats(board, seat))


class Evaluator:
    """评估器：无状态，可在多个座位间共用"""

    def score(self, board: Board, memory: Optional[AIMemory], seat: Seat,
              persona: Persona = Persona.BALANCED) -> float:
        w = persona.weights
        topo = board.topology
        flag_pos = board.find_flag(seat)
        total = 0.0
        for pos, p in board.iter_pieces():
            value = estimated_value(p, memory, seat)
            if p.seat == seat:
                total += value
                if topo.is_railway(pos):
                    total += RAIL_BONUS * w.mobility
                elif topo.is_campsite(pos):
                    total += CAMP_BONUS * w.mobility
                if flag_pos is not None and pos.manhattan(flag_pos) <= GUARD_RADIUS:
                    total += GUARD_BONUS.get(p.piece_type, 0) * w.defense
            elif p.seat.is_ally(seat):
                total += value * TEAMMATE_FACTOR
            else:
                total -= value
        total -= threat_level(board, seat) * THREAT_UNIT * w.defense
        for other in Seat:
            if other == seat or board.find_flag(other) is not None:
                continue
            if other.is_ally(seat):
                total -= FLAG_CAPTURE_BONUS * TEAMMATE_FACTOR
            else:
                total += FLAG_CAPTURE_BONUS * w.flag_capture
        return total

    def threat_level(self, board: Board, seat: Seat) -> int:
        return threat_level(board, seat)
