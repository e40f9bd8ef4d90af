#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
统一坐标转换工具：提供玩家区域本地坐标 <-> 全局(row,col) 的转换。
注意：本模块不依赖棋盘状态，仅做坐标推导。

约定：本地坐标以南方模板书写，行 1 为靠九宫格的第一排，行 depth 为大本营所在排；
列 1..width 在南方视角下从左到右。其他三方为南方模板旋转后的结果。
"""

from dataclasses import dataclass
from typing import Tuple

from .piece import Seat


@dataclass(frozen=True)
class Position:
    """棋盘位置"""
    row: int
    col: int

    def __str__(self):
        return f"({self.row},{self.col})"

    def to_tuple(self) -> Tuple[int, int]:
        return self.row, self.col

    def manhattan(self, other: "Position") -> int:
        return abs(self.row - other.row) + abs(self.col - other.col)


def to_global(seat: Seat, local_row: int, local_col: int, depth: int = 6, width: int = 5) -> Position:
    """将各阵营本地坐标转换为全局坐标。标准棋盘(depth=6,width=5)下：
    - 南:  (r,c) -> (10+r, 5+c)
    - 北:  (r,c) -> (6-r, 11-c)
    - 西:  (r,c) -> (5+c, 6-r)
    - 东:  (r,c) -> (11-c, 10+r)
    """
    far = depth + width  # 九宫格之后的第一行/列
    if seat == Seat.SOUTH:
        return Position(far - 1 + local_row, depth - 1 + local_col)
    if seat == Seat.NORTH:
        return Position(depth - local_row, far - local_col)
    if seat == Seat.WEST:
        return Position(depth - 1 + local_col, depth - local_row)
    return Position(far - local_col, far - 1 + local_row)


def from_global(seat: Seat, pos: Position, depth: int = 6, width: int = 5) -> Tuple[int, int]:
    """将全局坐标转换为指定阵营本地坐标(r,c)。与 to_global 互逆。
    不检查该位置是否真的属于此阵营，调用方自行判断。
    """
    far = depth + width
    if seat == Seat.SOUTH:
        return pos.row - (far - 1), pos.col - (depth - 1)
    if seat == Seat.NORTH:
        return depth - pos.row, far - pos.col
    if seat == Seat.WEST:
        return depth - pos.col, pos.row - (depth - 1)
    return pos.col - (far - 1), far - pos.row
