#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
走子合法性判定
- is_valid_move 是唯一裁决函数：只读、无副作用，非法时返回 False，从不抛异常。
- get_possible_moves 先按铁路扫描生成候选，再逐一交给 is_valid_move 确认。
"""

from collections import deque
from typing import List, Optional, Set

from .board import Board, Move
from .coords import Position
from .piece import Piece, Seat
from .topology import Topology

_DIRECTIONS = ((0, 1), (0, -1), (1, 0), (-1, 0))


def is_valid_move(board: Board, src: Position, dst: Position, piece: Piece) -> bool:
    """按固定顺序检查，任一条件不满足即判为非法"""
    topo = board.topology
    if src == dst or not topo.exists(src) or not topo.exists(dst):
        return False
    occupant = board.peek(src)
    if occupant is None or occupant.piece_id != piece.piece_id:
        return False

    # 地雷、军旗不能动；进了大本营的棋子不能再动
    if not piece.can_move():
        return False
    if topo.is_headquarters(src):
        return False

    # 己方或队友的大本营不可进入
    hq = topo.hq_owner(dst)
    if hq is not None and hq.is_ally(piece.seat):
        return False

    target = board.peek(dst)
    # 有子的行营不可攻击
    if target is not None and topo.is_campsite(dst):
        return False
    if target is not None and target.seat.is_ally(piece.seat):
        return False

    # 中央九宫只能停在 9 个交叉兵站上
    if topo.is_hub(dst) and not topo.is_hub_station(dst):
        return False

    adjacent = topo.are_adjacent(src, dst)
    if adjacent and _front_row_step_into_hub(topo, src, dst):
        return False
    if piece.is_engineer() and _engineer_jammed(board, src):
        return False
    if adjacent:
        return True

    if not (topo.is_railway(src) and topo.is_railway(dst)):
        return False
    if piece.is_engineer():
        return _engineer_path_exists(board, src, dst)
    if dst in topo.corner_neighbors(src):
        return True
    if _straight_path_clear(board, src, dst):
        return True
    return _corner_path_clear(board, src, dst)


def _front_row_step_into_hub(topo: Topology, src: Position, dst: Position) -> bool:
    """第一排的 2、4 列不能直接一步走进九宫"""
    owner = topo.zone_owner(src)
    if owner is None or not topo.is_hub(dst):
        return False
    r, c = topo.to_local(owner, src)
    return r == 1 and c in (2, topo.width - 1)


def _engineer_jammed(board: Board, src: Position) -> bool:
    """第一排 2、4 列的工兵两侧都有子时无法出发"""
    topo = board.topology
    owner = topo.zone_owner(src)
    if owner is None:
        return False
    r, c = topo.to_local(owner, src)
    if r != 1 or c not in (2, topo.width - 1):
        return False
    left = topo.to_global(owner, 1, c - 1)
    right = topo.to_global(owner, 1, c + 1)
    return not board.is_empty(left) and not board.is_empty(right)


def _engineer_path_exists(board: Board, src: Position, dst: Position) -> bool:
    """工兵：铁路图上 BFS，可任意转弯，途经格必须为空"""
    topo = board.topology
    visited: Set[Position] = {src}
    queue = deque([src])
    while queue:
        cur = queue.popleft()
        for nxt in topo.rail_neighbors(cur):
            if nxt == dst:
                return True
            if nxt in visited or not board.is_empty(nxt):
                continue
            visited.add(nxt)
            queue.append(nxt)
    return False


def _straight_path_clear(board: Board, src: Position, dst: Position) -> bool:
    """同一行（横向铁路）或同一列（纵向铁路）且中间格全空"""
    topo = board.topology
    if src.row == dst.row:
        on_line = topo.is_horizontal_rail
        step = 1 if dst.col > src.col else -1
        between = [Position(src.row, c) for c in range(src.col + step, dst.col, step)]
    elif src.col == dst.col:
        on_line = topo.is_vertical_rail
        step = 1 if dst.row > src.row else -1
        between = [Position(r, src.col) for r in range(src.row + step, dst.row, step)]
    else:
        return False
    if not (on_line(src) and on_line(dst)):
        return False
    return all(on_line(p) and board.is_empty(p) for p in between)


def _side_rail_leg(topo: Topology, corner: Position, pos: Position) -> Optional[List[Position]]:
    """pos 若在 corner 所在的边线铁路上，返回两者之间的格子；否则返回 None"""
    owner = topo.zone_owner(corner)
    if owner is None or topo.is_hub(pos) or topo.zone_owner(pos) != owner:
        return None
    _, corner_col = topo.to_local(owner, corner)
    r, c = topo.to_local(owner, pos)
    if c != corner_col or r > topo.template.last_rail_row:
        return None
    return [topo.to_global(owner, k, c) for k in range(2, r)]


def _corner_path_clear(board: Board, src: Position, dst: Position) -> bool:
    """非工兵经过一个拐角弯道：沿本方边线进入弯道，再沿相邻阵营边线驶出"""
    topo = board.topology
    if topo.is_hub(src):
        return False
    for c1, c2 in topo.corner_pairs():
        leg_in = _side_rail_leg(topo, c1, src)
        if leg_in is None:
            continue
        leg_out = _side_rail_leg(topo, c2, dst)
        if leg_out is None:
            continue
        blockers = leg_in + leg_out
        if src != c1:
            blockers.append(c1)
        if dst != c2:
            blockers.append(c2)
        if all(board.is_empty(p) for p in blockers):
            return True
    return False


def _rail_candidates(board: Board, src: Position, piece: Piece) -> Set[Position]:
    topo = board.topology
    out: Set[Position] = set()
    if not topo.is_railway(src):
        return out
    if piece.is_engineer():
        visited: Set[Position] = {src}
        queue = deque([src])
        while queue:
            cur = queue.popleft()
            for nxt in topo.rail_neighbors(cur):
                if nxt in visited:
                    continue
                visited.add(nxt)
                out.add(nxt)
                if board.is_empty(nxt):
                    queue.append(nxt)
        return out
    for dr, dc in _DIRECTIONS:
        on_line = topo.is_horizontal_rail if dr == 0 else topo.is_vertical_rail
        if not on_line(src):
            continue
        q = Position(src.row + dr, src.col + dc)
        while on_line(q):
            out.add(q)
            if not board.is_empty(q):
                break
            q = Position(q.row + dr, q.col + dc)
    for c1, c2 in topo.corner_pairs():
        if _side_rail_leg(topo, c1, src) is None:
            continue
        owner = topo.zone_owner(c2)
        _, col = topo.to_local(owner, c2)
        for r in range(1, topo.template.last_rail_row + 1):
            out.add(topo.to_global(owner, r, col))
    return out


def get_possible_moves(board: Board, pos: Position) -> List[Position]:
    """某格棋子的全部合法目标（按行列排序，保证确定性）"""
    piece = board.peek(pos)
    if piece is None or not piece.can_move():
        return []
    topo = board.topology
    candidates = set(topo.neighbors(pos)) | _rail_candidates(board, pos, piece)
    candidates.discard(pos)
    moves = [q for q in candidates if is_valid_move(board, pos, q, piece)]
    moves.sort(key=lambda p: (p.row, p.col))
    return moves


def enumerate_seat_moves(board: Board, seat: Seat) -> List[Move]:
    """某座位的全部合法走法"""
    moves: List[Move] = []
    for pos, _piece in sorted(board.pieces_of(seat), key=lambda item: (item[0].row, item[0].col)):
        for dst in get_possible_moves(board, pos):
            moves.append((pos, dst))
    return moves


def has_any_legal_move(board: Board, seat: Seat) -> bool:
    for pos, piece in board.pieces_of(seat):
        if piece.can_move() and get_possible_moves(board, pos):
            return True
    return False
