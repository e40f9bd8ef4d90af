import pytest

from game.coords import Position, from_global, to_global
from game.piece import Seat
from game.topology import STANDARD_TOPOLOGY as TOPO, BoardTopologyError, CellKind


def test_cell_count():
    # 四个阵营各 30 格 + 九宫 21 个线路格
    assert len(TOPO.positions()) == 4 * 30 + 21


@pytest.mark.parametrize("rc,kind", [
    ((16, 7), CellKind.HEADQUARTERS),
    ((16, 9), CellKind.HEADQUARTERS),
    ((12, 7), CellKind.CAMPSITE),
    ((13, 8), CellKind.CAMPSITE),
    ((11, 6), CellKind.STATION),
    ((15, 8), CellKind.STATION),
    ((12, 8), CellKind.NORMAL),
    ((8, 8), CellKind.STATION),
    ((6, 6), CellKind.STATION),
    ((7, 8), CellKind.PASS_THROUGH),
    ((6, 7), CellKind.PASS_THROUGH),
])
def test_classify(rc, kind):
    assert TOPO.classify(Position(*rc)) == kind


def test_off_board_lookup_raises():
    with pytest.raises(BoardTopologyError):
        TOPO.classify(Position(0, 0))
    with pytest.raises(BoardTopologyError):
        TOPO.zone_owner(Position(7, 7))
    assert not TOPO.exists(Position(7, 7))


def test_zone_owner_and_headquarters():
    assert TOPO.zone_owner(Position(12, 8)) == Seat.SOUTH
    assert TOPO.zone_owner(Position(3, 8)) == Seat.NORTH
    assert TOPO.zone_owner(Position(8, 2)) == Seat.WEST
    assert TOPO.zone_owner(Position(8, 14)) == Seat.EAST
    assert TOPO.zone_owner(Position(8, 8)) is None
    assert TOPO.headquarters_of(Seat.NORTH) == [Position(0, 9), Position(0, 7)]
    assert TOPO.hq_owner(Position(9, 16)) == Seat.EAST
    assert TOPO.hq_owner(Position(12, 8)) is None


@pytest.mark.parametrize("seat", list(Seat))
def test_local_global_inverse(seat):
    for r in range(1, 7):
        for c in range(1, 6):
            pos = to_global(seat, r, c)
            assert TOPO.exists(pos)
            assert TOPO.zone_owner(pos) == seat
            assert from_global(seat, pos) == (r, c)


def test_hub_stations_and_pass_through():
    stations = [p for p in TOPO.positions() if TOPO.is_hub_station(p)]
    assert len(stations) == 9
    assert all(TOPO.classify(p) == CellKind.STATION for p in stations)
    passes = [p for p in TOPO.positions() if TOPO.is_pass_through(p)]
    assert len(passes) == 12
    assert all(TOPO.is_railway(p) for p in passes)


def test_corner_links_are_symmetric():
    assert TOPO.corner_neighbors(Position(11, 10)) == [Position(10, 11)]
    assert TOPO.corner_neighbors(Position(10, 11)) == [Position(11, 10)]
    pairs = TOPO.corner_pairs()
    assert len(pairs) == 8
    for a, b in pairs:
        assert (b, a) in pairs


def test_campsite_diagonals():
    camp = Position(13, 8)
    assert TOPO.are_adjacent(camp, Position(12, 7))
    assert TOPO.are_adjacent(camp, Position(14, 9))
    # 两端都不是行营的斜线不相邻
    assert not TOPO.are_adjacent(Position(12, 8), Position(13, 9))
    assert len(TOPO.neighbors(camp)) == 8


def test_rail_orientation():
    # 南方第一排横向；边线纵向；前排中点同时纵向通往九宫
    assert TOPO.is_horizontal_rail(Position(11, 7))
    assert not TOPO.is_vertical_rail(Position(11, 7))
    assert TOPO.is_vertical_rail(Position(13, 6))
    assert TOPO.is_vertical_rail(Position(11, 8))
    # 东方：边线（本地第 1 列）在全局上是横向
    assert TOPO.is_horizontal_rail(Position(10, 13))
    assert not TOPO.is_vertical_rail(Position(10, 13))
    assert Position(10, 12) in TOPO.rail_neighbors(Position(10, 13))


def test_front_and_back_rows():
    assert TOPO.is_front_row(Seat.SOUTH, Position(11, 7))
    assert not TOPO.is_front_row(Seat.SOUTH, Position(12, 8))
    assert TOPO.is_back_rows(Seat.SOUTH, Position(15, 8))
    assert TOPO.is_back_rows(Seat.SOUTH, Position(16, 8))
    assert not TOPO.is_back_rows(Seat.NORTH, Position(16, 8))
    assert len(TOPO.setup_slots(Seat.WEST)) == 25
