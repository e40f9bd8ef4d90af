import random

import pytest

from ai.collaborators import OpponentStatsRecorder
from game.coords import Position
from game.game_logic import GameLogic, GameObserver, GameState
from game.piece import Seat

S, E, N, W = Seat.SOUTH, Seat.EAST, Seat.NORTH, Seat.WEST


class Recorder(GameObserver):
    def __init__(self):
        self.events = []

    def on_game_started(self, board):
        self.events.append("start")

    def on_move_committed(self, record, outcome, board):
        self.events.append(record.piece_id)

    def on_game_finished(self, board, winner_team):
        self.events.append(("finish", winner_team))


@pytest.fixture
def game():
    gl = GameLogic(rng=random.Random(5))
    gl.auto_layout_all_players()
    return gl


def test_start_requires_valid_setups():
    gl = GameLogic()
    gl.auto_layout_player(S)
    assert not gl.start_game()
    assert gl.game_state == GameState.SETUP


def test_start_and_first_move(game):
    rec = Recorder()
    game.add_observer(rec)
    assert game.start_game()
    assert game.game_state == GameState.PLAYING
    assert game.current_seat == S
    moves = game.legal_moves_for(S)
    assert moves
    src, dst = moves[0]
    record = game.move_piece(src, dst)
    assert record is not None and record.turn == 1
    assert game.current_seat == E
    assert len(game.history) == 1
    assert rec.events == ["start", record.piece_id]


def test_illegal_move_changes_nothing(game):
    game.start_game()
    before = dict(game.board.pieces)
    # 大本营里的军旗不能动；也不能替别的座位走
    flag = game.board.find_flag(S)
    assert game.move_piece(flag, Position(flag.row - 1, flag.col)) is None
    east_moves = game.legal_moves_for(E)
    assert game.move_piece(*east_moves[0]) is None
    assert game.board.pieces == before
    assert game.current_seat == S
    assert len(game.history) == 0


def test_possible_moves_only_for_current_seat(game):
    game.start_game()
    src, _dst = game.legal_moves_for(S)[0]
    assert game.possible_moves(src)
    east_src, _ = game.legal_moves_for(E)[0]
    assert game.possible_moves(east_src) == []


def test_surrender_removes_seat(game):
    game.start_game()
    assert game.surrender()
    assert S in game.dead_seats
    assert not game.board.has_pieces(S)
    assert game.current_seat == E
    assert game.game_state == GameState.PLAYING


def test_team_surrender_ends_game(game):
    stats = OpponentStatsRecorder()
    rec = Recorder()
    game.add_observer(stats)
    game.add_observer(rec)
    game.start_game()
    game.surrender(E)
    game.surrender(W)
    assert game.game_state == GameState.FINISHED
    assert game.winner_team == S.team
    assert rec.events[-1] == ("finish", S.team)
    assert len(stats.games) == 1
    assert set(stats.games[0].flag_positions) == {"south", "east", "north", "west"}


def test_skip_turn(game):
    game.start_game()
    assert game.skip_turn()
    assert game.current_seat == E


def test_snapshot_hides_enemy_identities(game):
    game.start_game()
    snap = game.snapshot(viewer=S)
    assert snap["state"] == "PLAYING"
    mine = [p for p in snap["pieces"] if p["seat"] == "south"]
    others = [p for p in snap["pieces"] if p["seat"] != "south"]
    assert all(p["type"] is not None for p in mine)
    assert all(p["type"] is None for p in others)
    assert all(p["type"] is not None for p in game.snapshot()["pieces"])


def test_move_cap_adjudicates(game):
    game.max_moves_after_death = 1
    game.start_game()
    game.surrender(N)
    assert game.game_state == GameState.PLAYING
    src, dst = game.legal_moves_for(game.current_seat)[0]
    game.move_piece(src, dst)
    assert game.game_state == GameState.FINISHED
    assert game.winner_team == E.team


def test_reset(game):
    game.start_game()
    game.reset_game()
    assert game.game_state == GameState.SETUP
    assert not game.board.pieces
