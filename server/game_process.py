import logging
import random
import threading
from typing import Callable, Dict, Optional

from ai.agent import JunqiAgent
from ai.collaborators import OpponentStatsRecorder
from game.coords import Position
from game.formations import SetupArchetype
from game.game_logic import GameLogic, GameState
from game.history import MoveRecord
from game.piece import Seat
from server.settings import Settings
from server.strategies.personas import Persona
from server.strategies.search import SearchConfig


class GameProcess:
    """单局游戏进程管理：按配置创建规则层与四个座位的 AI 代理，并驱动 AI 轮流行棋。
    - 同步驱动：step() / run_until_finished()
    - 后台驱动：start_background() 在线程中跑完整局
    """
    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        self._logger = logging.getLogger(__name__)
        self._rng = random.Random(self.settings.seed)
        self._game_logic: Optional[GameLogic] = None
        self._agents: Dict[Seat, JunqiAgent] = {}
        # 人类席位不由 AI 驱动
        self.human_seats = set()
        self.stats = OpponentStatsRecorder()
        self._move_consumer: Optional[Callable[[MoveRecord], None]] = None
        # 后台线程状态
        self._ai_worker_thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._lock = threading.RLock()

    @property
    def game_logic(self) -> GameLogic:
        if self._game_logic is None:
            self.new_game()
        return self._game_logic

    @property
    def agents(self) -> Dict[Seat, JunqiAgent]:
        return self._agents

    def set_move_consumer(self, consumer: Callable[[MoveRecord], None]) -> None:
        """每步提交后的回调（例如 WS 广播）"""
        self._move_consumer = consumer

    def _search_config(self) -> SearchConfig:
        s = self.settings
        return SearchConfig(
            depth=s.search_depth,
            threat_depth=s.search_depth + 1,
            time_limit_ms=s.time_limit_ms,
            use_alpha_beta=s.use_alpha_beta,
        )

    # ============ 开局 ============
    def new_game(self, formations: Optional[Dict[Seat, str]] = None,
                 archetypes: Optional[Dict[Seat, SetupArchetype]] = None,
                 first_seat: Seat = Seat.SOUTH) -> GameLogic:
        """新建一局：布阵（指定名阵 / 智能布阵 / 随机名阵）、创建代理并开始"""
        with self._lock:
            return self._new_game(formations, archetypes, first_seat)

    def _new_game(self, formations, archetypes, first_seat: Seat) -> GameLogic:
        gl = GameLogic(max_moves_after_death=self.settings.max_moves_after_death,
                       rng=random.Random(self._rng.random()))
        formations = formations or {}
        archetypes = archetypes or {}
        for seat in Seat:
            if seat in formations:
                ok = gl.apply_formation(seat, formations[seat])
            elif seat in archetypes:
                ok = gl.apply_smart_setup(seat, archetypes[seat])
            else:
                ok = gl.auto_layout_player(seat)
            if not ok:
                raise ValueError(f"{seat.label} 布阵失败")

        self._agents = {}
        config = self._search_config()
        for seat in Seat:
            agent = JunqiAgent(seat, self.settings.personas.get(seat, Persona.BALANCED), config, self.settings.strategy)
            self._agents[seat] = agent
            gl.add_observer(agent)
        gl.add_observer(self.stats)
        if not gl.start_game(first_seat):
            raise ValueError(f"开局失败: {gl.setup_problems()}")
        self._game_logic = gl
        personas = {s.label: a.persona.name for s, a in self._agents.items()}
        self._logger.info(f"[PROCESS] 新对局：策略={self.settings.strategy} 人格={personas}")
        return gl

    # ============ 行棋 ============
    def is_current_turn_ai(self) -> bool:
        gl = self.game_logic
        return gl.game_state == GameState.PLAYING and gl.current_seat not in self.human_seats

    def step(self) -> Optional[MoveRecord]:
        """让当前座位的 AI 走一步；无步可走或选步失败时跳过该回合"""
        with self._lock:
            gl = self.game_logic
            if gl.game_state != GameState.PLAYING:
                return None
            seat = gl.current_seat
            agent = self._agents[seat]
            try:
                move = agent.choose_move(gl.board, gl.history)
            except Exception as e:
                self._logger.exception(f"[PROCESS] {seat.label} 选步失败，跳过回合: {e}")
                gl.skip_turn()
                return None
            if move is None:
                self._logger.info(f"[PROCESS] {seat.label} 无最佳走法，跳过回合")
                gl.skip_turn()
                return None
            record = gl.move_piece(move[0], move[1])
            if record is None:
                self._logger.warning(f"[PROCESS] {seat.label} 选出的走法被拒绝 {move[0]}->{move[1]}，跳过回合")
                gl.skip_turn()
                return None
        if self._move_consumer is not None:
            self._move_consumer(record)
        return record

    def commit_move(self, from_pos: Position, to_pos: Position) -> Optional[MoveRecord]:
        """人类席位落子；与 AI 行棋共用同一把锁"""
        with self._lock:
            record = self.game_logic.move_piece(from_pos, to_pos)
        if record is not None and self._move_consumer is not None:
            self._move_consumer(record)
        return record

    def run_until_finished(self, max_turns: Optional[int] = None) -> GameLogic:
        """同步跑完整局（或到达回合上限）"""
        limit = max_turns if max_turns is not None else self.settings.max_turns
        gl = self.game_logic
        turns = 0
        while gl.game_state == GameState.PLAYING and turns < limit and not self._stop.is_set():
            if not self.is_current_turn_ai():
                break
            self.step()
            turns += 1
        if gl.game_state == GameState.PLAYING and turns >= limit:
            self._logger.info(f"[PROCESS] 达到回合上限 {limit}，对局未结束")
        return gl

    # ============ 后台线程 ============
    def start_background(self, max_turns: Optional[int] = None) -> None:
        if self._ai_worker_thread and self._ai_worker_thread.is_alive():
            self._logger.debug("[PROCESS] 后台线程已在运行")
            return
        self._stop.clear()
        self._ai_worker_thread = threading.Thread(
            target=self.run_until_finished, args=(max_turns,), daemon=True)
        self._ai_worker_thread.start()

    def stop_background(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._ai_worker_thread is not None:
            self._ai_worker_thread.join(timeout)
            self._ai_worker_thread = None
