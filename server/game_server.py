#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
WebSocket 接口：客户端发送 JSON 指令，服务器执行后回复同类型的 JSON 结果。
- 支持的指令：get_state / possible_moves / move_piece / ai_move / reset
- 回复格式：{"type": <指令>, "ok": bool, ...}；出错时带 "error"
- 每次成功落子后向所有连接广播一条 "move_committed"
"""

import json
import asyncio
import logging
import threading
from typing import Any, Dict, Optional, Set

import websockets

from game.coords import Position
from game.game_logic import GameLogic
from game.history import MoveRecord
from game.piece import Seat
from server.game_process import GameProcess

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "1.0.0"


class GameServer:
    """单局 WebSocket 服务：对局状态由 GameProcess 持有"""

    def __init__(self, host: str = "localhost", port: int = 8765,
                 process: Optional[GameProcess] = None):
        self.host = host
        self.port = port
        self.process = process or GameProcess()
        self.clients: Set[Any] = set()
        self.protocol_version: str = PROTOCOL_VERSION
        # WebSocket服务事件循环与线程（后台运行时使用）
        self._ws_loop: Optional[asyncio.AbstractEventLoop] = None
        self._ws_thread: Optional[threading.Thread] = None

    @property
    def game_logic(self) -> GameLogic:
        return self.process.game_logic

    # ============ 消息处理 ============
    async def handle_message(self, message: str) -> Dict[str, Any]:
        """解析并执行一条指令，返回回复字典（不直接发送）"""
        try:
            data = json.loads(message)
        except json.JSONDecodeError:
            logger.warning("[WS] 无效的JSON格式")
            return {"type": "error", "ok": False, "error": "invalid_json"}
        if not isinstance(data, dict):
            return {"type": "error", "ok": False, "error": "invalid_message"}

        message_type = data.get("type")
        handler = {
            "get_state": self._handle_get_state,
            "possible_moves": self._handle_possible_moves,
            "move_piece": self._handle_move_piece,
            "ai_move": self._handle_ai_move,
            "reset": self._handle_reset,
        }.get(message_type)
        if handler is None:
            logger.info(f"[WS] 忽略不支持的消息类型: {message_type}")
            return {"type": message_type, "ok": False, "error": "unsupported_type"}
        try:
            reply = handler(data)
            if asyncio.iscoroutine(reply):
                reply = await reply
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"[WS] 指令参数错误 type={message_type}: {e}")
            return {"type": message_type, "ok": False, "error": "bad_request"}
        reply.setdefault("type", message_type)
        return reply

    @staticmethod
    def _parse_pos(obj: Dict[str, Any]) -> Position:
        return Position(row=int(obj["row"]), col=int(obj["col"]))

    @staticmethod
    def _parse_seat(value: Any) -> Optional[Seat]:
        if value is None:
            return None
        return Seat[str(value).upper()]

    def _handle_get_state(self, data: Dict[str, Any]) -> Dict[str, Any]:
        viewer = self._parse_seat(data.get("viewer"))
        return {"ok": True, "version": self.protocol_version,
                "state": self.game_logic.snapshot(viewer)}

    def _handle_possible_moves(self, data: Dict[str, Any]) -> Dict[str, Any]:
        pos = self._parse_pos(data["from"])
        targets = self.game_logic.possible_moves(pos)
        return {"ok": True, "from": pos.to_tuple(), "targets": [t.to_tuple() for t in targets]}

    async def _handle_move_piece(self, data: Dict[str, Any]) -> Dict[str, Any]:
        src = self._parse_pos(data["from"])
        dst = self._parse_pos(data["to"])
        # 后台线程可能正持锁搜索，提交放到工作线程里等锁
        record = await asyncio.to_thread(self.process.commit_move, src, dst)
        if record is None:
            return {"ok": False, "error": "illegal_move"}
        self._broadcast_record(record)
        return {"ok": True, "record": record.to_dict()}

    async def _handle_ai_move(self, data: Dict[str, Any]) -> Dict[str, Any]:
        # 搜索可能持续数秒，不能阻塞事件循环
        record = await asyncio.to_thread(self.process.step)
        if record is None:
            return {"ok": False, "error": "no_move", "current_seat": self.game_logic.current_seat.label}
        self._broadcast_record(record)
        return {"ok": True, "record": record.to_dict()}

    async def _handle_reset(self, data: Dict[str, Any]) -> Dict[str, Any]:
        formations = {Seat[k.upper()]: v for k, v in (data.get("formations") or {}).items()}
        await asyncio.to_thread(self.process.new_game, formations)
        return {"ok": True, "state": self.game_logic.snapshot()}

    # ============ 广播 ============
    def _broadcast_record(self, record: MoveRecord) -> None:
        if not self.clients:
            return
        payload = json.dumps({"type": "move_committed", "record": record.to_dict()}, ensure_ascii=False)
        websockets.broadcast(self.clients, payload)

    # ============ WebSocket 服务启动/停止 ============
    async def _ws_handler(self, websocket, path=None):
        """WS连接处理：注册/接收/注销。"""
        self.clients.add(websocket)
        logger.info(f"[WS] 客户端已连接，当前 {len(self.clients)} 个")
        try:
            async for message in websocket:
                reply = await self.handle_message(message)
                await websocket.send(json.dumps(reply, ensure_ascii=False))
        except websockets.ConnectionClosed:
            pass
        finally:
            self.clients.discard(websocket)
            logger.info(f"[WS] 客户端断开连接，剩余 {len(self.clients)} 个")

    async def serve_forever(self):
        async with websockets.serve(self._ws_handler, self.host, self.port):
            logger.info(f"[WS] WebSocket服务器已启动：ws://{self.host}:{self.port}")
            # 使用永不完成的Future维持事件循环
            await asyncio.Future()

    def start_ws_server(self):
        """在后台线程启动WebSocket服务器并保持运行。"""
        if self._ws_thread and self._ws_thread.is_alive():
            return

        def runner():
            loop = asyncio.new_event_loop()
            self._ws_loop = loop
            asyncio.set_event_loop(loop)
            try:
                loop.run_until_complete(self.serve_forever())
            except Exception as e:
                logger.exception(f"[WS] 服务器运行异常: {e}")

        self._ws_thread = threading.Thread(target=runner, daemon=True)
        self._ws_thread.start()
