#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
终局判定
- 一方（座位）出局：失去军旗，或没有任何棋子，或没有任何可走的棋子。
- 一队两名座位均出局即全队被消灭，游戏结束，另一队获胜。
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from .board import Board
from .piece import PieceType, Seat
from .rules import has_any_legal_move

# 局面强弱（用于步数上限判负）：只统计可动棋子的等级之和
_STRENGTH_SKIP = {PieceType.FLAG, PieceType.MINE}


@dataclass
class GameOverResult:
    is_over: bool
    winner_team: Optional[int] = None
    newly_dead: List[Seat] = field(default_factory=list)


def seat_is_alive(board: Board, seat: Seat) -> bool:
    if board.find_flag(seat) is None:
        return False
    if not board.has_pieces(seat):
        return False
    return has_any_legal_move(board, seat)


def check_game_over(board: Board, dead_seats: Iterable[Seat] = ()) -> GameOverResult:
    """返回终局结果；newly_dead 为本次新出局的座位（调用方负责清场）"""
    dead: Set[Seat] = set(dead_seats)
    newly_dead: List[Seat] = []
    for seat in Seat:
        if seat in dead:
            continue
        if not seat_is_alive(board, seat):
            dead.add(seat)
            newly_dead.append(seat)
    for team in (0, 1):
        members = [s for s in Seat if s.team == team]
        if all(s in dead for s in members):
            return GameOverResult(True, 1 - team, newly_dead)
    return GameOverResult(False, None, newly_dead)


def next_active_seat(board: Board, current: Seat, dead_seats: Iterable[Seat] = (),
                     require_moves: bool = False) -> Seat:
    """按 南→东→北→西 轮转，跳过已出局座位；require_moves 时同时跳过无子可走的座位。
    若没有其他座位可行棋，返回 current。
    """
    dead = set(dead_seats)
    for step in range(1, 5):
        seat = Seat((current + step) % 4)
        if seat in dead:
            continue
        if require_moves and not has_any_legal_move(board, seat):
            continue
        return seat
    return current


def team_strength(board: Board) -> Dict[int, int]:
    """两队可动棋子的等级之和（炸弹按 师长 计）"""
    totals = {0: 0, 1: 0}
    for _pos, piece in board.iter_pieces():
        if piece.piece_type in _STRENGTH_SKIP:
            continue
        value = 8 if piece.is_bomb() else piece.rank
        totals[piece.seat.team] += value
    return totals
