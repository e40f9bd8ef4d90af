#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
四国军棋棋盘拓扑
- 静态描述：每个格子的类型（普通/行营/大本营/兵站/中央过轨）、铁路走向、相邻关系与四个拐角弯道。
- 四个阵营共用一份南方本地模板（depth 行 x width 列），按座位旋转到全局坐标。
- 拓扑对象创建后只读，可在所有棋盘副本之间共享。

标准棋盘 17x17：
  北方 行0-5 列6-10；南方 行11-16 列6-10；西方 行6-10 列0-5；东方 行6-10 列11-16；
  中央九宫 行6-10 列6-10，只有 6/8/10 行列上的线路格存在，9 个交叉点为可停靠兵站，其余为过轨。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from .coords import Position, from_global, to_global
from .piece import Seat


class BoardTopologyError(ValueError):
    """访问了十字棋盘之外的格子：属于编程错误，立即抛出"""


class CellKind(Enum):
    """格子类型"""
    NORMAL = "普通"
    CAMPSITE = "行营"
    HEADQUARTERS = "大本营"
    STATION = "兵站"
    PASS_THROUGH = "过轨"


@dataclass(frozen=True)
class ZoneTemplate:
    """单个阵营的南方本地模板（行 1 靠九宫格）"""
    depth: int = 6
    width: int = 5
    campsites: FrozenSet[Tuple[int, int]] = frozenset({(2, 2), (2, 4), (3, 3), (4, 2), (4, 4)})
    headquarters: FrozenSet[Tuple[int, int]] = frozenset({(6, 2), (6, 4)})
    # 与九宫格平行的两条铁路（第一排与倒数第二排）
    rail_rows: FrozenSet[int] = frozenset({1, 5})

    @property
    def rail_cols(self) -> FrozenSet[int]:
        return frozenset({1, self.width})

    @property
    def front_center(self) -> Tuple[int, int]:
        return 1, (self.width + 1) // 2

    @property
    def last_rail_row(self) -> int:
        return max(self.rail_rows)


STANDARD_TEMPLATE = ZoneTemplate()


@dataclass(frozen=True)
class CellInfo:
    kind: CellKind
    owner: Optional[Seat]
    railway: bool = False
    horizontal: bool = False
    vertical: bool = False


class Topology:
    """十字形棋盘拓扑（只读）"""

    def __init__(self, template: ZoneTemplate = STANDARD_TEMPLATE):
        self.template = template
        self.depth = template.depth
        self.width = template.width
        self.size = 2 * template.depth + template.width
        self.hub_min = template.depth
        self.hub_max = template.depth + template.width - 1
        off = (0, template.width // 2, template.width - 1)
        self.hub_lines: FrozenSet[int] = frozenset(self.hub_min + o for o in off)
        self._cells: Dict[Position, CellInfo] = {}
        self._corner_links: Dict[Position, List[Position]] = {}
        self._build()

    # ============ 构建 ============
    def _build(self):
        for seat in Seat:
            for r in range(1, self.depth + 1):
                for c in range(1, self.width + 1):
                    pos = to_global(seat, r, c, self.depth, self.width)
                    self._cells[pos] = self._zone_cell(seat, r, c)
        for row in range(self.hub_min, self.hub_max + 1):
            for col in range(self.hub_min, self.hub_max + 1):
                on_row = row in self.hub_lines
                on_col = col in self.hub_lines
                if not (on_row or on_col):
                    continue
                kind = CellKind.STATION if (on_row and on_col) else CellKind.PASS_THROUGH
                self._cells[Position(row, col)] = CellInfo(kind, None, True, on_row, on_col)
        # 拐角弯道：座位 s 的本地(1,width) 与座位 s+1 的本地(1,1)
        for seat in Seat:
            a = to_global(seat, 1, self.width, self.depth, self.width)
            b = to_global(Seat((seat + 1) % 4), 1, 1, self.depth, self.width)
            self._corner_links.setdefault(a, []).append(b)
            self._corner_links.setdefault(b, []).append(a)

    def _zone_cell(self, seat: Seat, r: int, c: int) -> CellInfo:
        t = self.template
        along_front = r in t.rail_rows
        along_depth = (c in t.rail_cols and r <= t.last_rail_row) or (r, c) == t.front_center
        if (r, c) in t.headquarters:
            kind = CellKind.HEADQUARTERS
        elif (r, c) in t.campsites:
            kind = CellKind.CAMPSITE
        elif along_front or along_depth:
            kind = CellKind.STATION
        else:
            kind = CellKind.NORMAL
        railway = kind == CellKind.STATION
        if seat in (Seat.SOUTH, Seat.NORTH):
            horizontal, vertical = along_front, along_depth
        else:
            horizontal, vertical = along_depth, along_front
        return CellInfo(kind, seat, railway, railway and horizontal, railway and vertical)

    # ============ 基础查询 ============
    def exists(self, pos: Position) -> bool:
        return pos in self._cells

    def _info(self, pos: Position) -> CellInfo:
        info = self._cells.get(pos)
        if info is None:
            raise BoardTopologyError(f"位置 {pos} 不在棋盘上")
        return info

    def positions(self) -> List[Position]:
        return list(self._cells.keys())

    def classify(self, pos: Position) -> CellKind:
        return self._info(pos).kind

    def is_railway(self, pos: Position) -> bool:
        info = self._cells.get(pos)
        return bool(info and info.railway)

    def is_horizontal_rail(self, pos: Position) -> bool:
        info = self._cells.get(pos)
        return bool(info and info.horizontal)

    def is_vertical_rail(self, pos: Position) -> bool:
        info = self._cells.get(pos)
        return bool(info and info.vertical)

    def is_campsite(self, pos: Position) -> bool:
        info = self._cells.get(pos)
        return bool(info and info.kind == CellKind.CAMPSITE)

    def is_headquarters(self, pos: Position) -> bool:
        info = self._cells.get(pos)
        return bool(info and info.kind == CellKind.HEADQUARTERS)

    def is_hub(self, pos: Position) -> bool:
        """是否位于中央九宫矩形内（不论格子是否存在）"""
        return self.hub_min <= pos.row <= self.hub_max and self.hub_min <= pos.col <= self.hub_max

    def is_hub_station(self, pos: Position) -> bool:
        return self.is_hub(pos) and pos.row in self.hub_lines and pos.col in self.hub_lines

    def is_pass_through(self, pos: Position) -> bool:
        info = self._cells.get(pos)
        return bool(info and info.kind == CellKind.PASS_THROUGH)

    def zone_owner(self, pos: Position) -> Optional[Seat]:
        return self._info(pos).owner

    def hq_owner(self, pos: Position) -> Optional[Seat]:
        info = self._cells.get(pos)
        if info and info.kind == CellKind.HEADQUARTERS:
            return info.owner
        return None

    # ============ 相邻与弯道 ============
    def are_adjacent(self, a: Position, b: Position) -> bool:
        """正交相邻；斜向相邻仅当任一端为行营"""
        if a not in self._cells or b not in self._cells:
            return False
        dr = abs(a.row - b.row)
        dc = abs(a.col - b.col)
        if dr + dc == 1:
            return True
        if dr == 1 and dc == 1:
            return self.is_campsite(a) or self.is_campsite(b)
        return False

    def neighbors(self, pos: Position) -> List[Position]:
        """所有一步可达的相邻格（含行营斜线）"""
        out: List[Position] = []
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                if dr == 0 and dc == 0:
                    continue
                q = Position(pos.row + dr, pos.col + dc)
                if self.are_adjacent(pos, q):
                    out.append(q)
        return out

    def corner_neighbors(self, pos: Position) -> List[Position]:
        return list(self._corner_links.get(pos, []))

    def corner_pairs(self) -> List[Tuple[Position, Position]]:
        """所有有向弯道 (c1, c2)"""
        return [(a, b) for a, links in self._corner_links.items() for b in links]

    def rail_neighbors(self, pos: Position) -> List[Position]:
        """铁路图上的邻居：同走向的正交相邻铁路格 + 拐角弯道"""
        out: List[Position] = []
        if not self.is_railway(pos):
            return out
        if self.is_horizontal_rail(pos):
            for dc in (-1, 1):
                q = Position(pos.row, pos.col + dc)
                if self.is_horizontal_rail(q):
                    out.append(q)
        if self.is_vertical_rail(pos):
            for dr in (-1, 1):
                q = Position(pos.row + dr, pos.col)
                if self.is_vertical_rail(q):
                    out.append(q)
        out.extend(self._corner_links.get(pos, []))
        return out

    # ============ 本地坐标 ============
    def to_local(self, seat: Seat, pos: Position) -> Tuple[int, int]:
        return from_global(seat, pos, self.depth, self.width)

    def to_global(self, seat: Seat, local_row: int, local_col: int) -> Position:
        return to_global(seat, local_row, local_col, self.depth, self.width)

    def local_of_owner(self, pos: Position) -> Optional[Tuple[int, int]]:
        """格子所属阵营的本地坐标；中央九宫返回 None"""
        owner = self.zone_owner(pos)
        if owner is None:
            return None
        return self.to_local(owner, pos)

    def is_front_row(self, seat: Seat, pos: Position) -> bool:
        return self.zone_owner(pos) == seat and self.to_local(seat, pos)[0] == 1

    def is_back_rows(self, seat: Seat, pos: Position) -> bool:
        """后两排（地雷可布区域）"""
        return self.zone_owner(pos) == seat and self.to_local(seat, pos)[0] >= self.depth - 1

    def zone_positions(self, seat: Seat) -> List[Position]:
        return [
            self.to_global(seat, r, c)
            for r in range(1, self.depth + 1)
            for c in range(1, self.width + 1)
        ]

    def setup_slots(self, seat: Seat) -> List[Position]:
        """布阵可用格：阵营内除行营以外的所有格子"""
        return [p for p in self.zone_positions(seat) if not self.is_campsite(p)]

    def headquarters_of(self, seat: Seat) -> List[Position]:
        return [self.to_global(seat, r, c) for r, c in sorted(self.template.headquarters)]


STANDARD_TOPOLOGY = Topology()
