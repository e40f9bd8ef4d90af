#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
四国军棋 AI 主程序
- selfplay：四个 AI 座位自对弈一局并打印结果
- serve：启动 WebSocket 服务
"""

import sys
import asyncio
import logging
import argparse

from server.game_process import GameProcess
from server.game_server import GameServer
from server.settings import load_settings


def setup_logging(level: str) -> None:
    # 简单控制台输出，只打印到终端，不写文件
    root = logging.getLogger()
    root.setLevel(level)
    has_stream = any(isinstance(h, logging.StreamHandler) for h in root.handlers)
    if not has_stream:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s'))
        root.addHandler(ch)
    # 搜索的逐候选日志过多，固定为 INFO
    logging.getLogger("server.strategies.search").setLevel(max(logging.INFO, root.level))


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="四国军棋 AI")
    parser.add_argument("mode", nargs="?", choices=["selfplay", "serve"], default="selfplay")
    parser.add_argument("--max-turns", type=int, default=None)
    args = parser.parse_args(argv)

    settings = load_settings()
    setup_logging(settings.log_level)
    process = GameProcess(settings)

    if args.mode == "serve":
        server = GameServer(settings.host, settings.port, process)
        try:
            asyncio.run(server.serve_forever())
        except KeyboardInterrupt:
            logging.getLogger(__name__).info("[WS] 服务已停止")
        return 0

    gl = process.run_until_finished(args.max_turns)
    print(f"结果：{gl.game_state.name} 胜方队伍={gl.winner_team} 步数={len(gl.history)} {gl.finish_reason}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
