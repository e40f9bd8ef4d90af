#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
运行配置：从环境变量（以及 .env 文件）读取
非法取值记一条警告并使用默认值，不会中断启动。
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv, find_dotenv

from game.piece import Seat
from server.strategies.personas import Persona

logger = logging.getLogger(__name__)

STRATEGIES = ("minimax", "greedy")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class Settings:
    host: str = "localhost"
    port: int = 8765
    strategy: str = "minimax"
    search_depth: int = 2
    time_limit_ms: int = 5000
    use_alpha_beta: bool = True
    personas: Dict[Seat, Persona] = field(default_factory=lambda: {s: Persona.BALANCED for s in Seat})
    max_turns: int = 2000
    max_moves_after_death: Optional[int] = None
    log_level: str = "INFO"
    seed: Optional[int] = None


def _int(env, key: str, default: Optional[int], minimum: int = 0) -> Optional[int]:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"[CONFIG] {key}={raw!r} 不是整数，使用默认值 {default}")
        return default
    if value < minimum:
        logger.warning(f"[CONFIG] {key}={value} 小于 {minimum}，使用默认值 {default}")
        return default
    return value


def _bool(env, key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    val = raw.strip().lower()
    if val in ("1", "true", "yes", "on"):
        return True
    if val in ("0", "false", "no", "off"):
        return False
    logger.warning(f"[CONFIG] {key}={raw!r} 不是布尔值，使用默认值 {default}")
    return default


def _choice(env, key: str, choices, default: str, upper: bool = False) -> str:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    val = raw.strip().upper() if upper else raw.strip().lower()
    if val not in choices:
        logger.warning(f"[CONFIG] {key}={raw!r} 不在 {choices} 中，使用默认值 {default}")
        return default
    return val


def load_settings(env=None, dotenv: bool = True) -> Settings:
    """读取配置；env 缺省为 os.environ（会先加载 .env，已存在的环境变量优先）"""
    if env is None:
        if dotenv:
            load_dotenv(find_dotenv(usecwd=True), override=False)
        env = os.environ
    s = Settings()
    s.host = (env.get("JUNQI_HOST") or s.host).strip()
    s.port = _int(env, "JUNQI_PORT", s.port, minimum=1)
    s.strategy = _choice(env, "JUNQI_STRATEGY", STRATEGIES, s.strategy)
    s.search_depth = _int(env, "JUNQI_SEARCH_DEPTH", s.search_depth, minimum=1)
    s.time_limit_ms = _int(env, "JUNQI_TIME_LIMIT_MS", s.time_limit_ms, minimum=1)
    s.use_alpha_beta = _bool(env, "JUNQI_USE_ALPHA_BETA", s.use_alpha_beta)
    s.max_turns = _int(env, "JUNQI_MAX_TURNS", s.max_turns, minimum=1)
    s.max_moves_after_death = _int(env, "JUNQI_MAX_MOVES_AFTER_DEATH", None, minimum=1)
    s.log_level = _choice(env, "JUNQI_LOG_LEVEL", LOG_LEVELS, s.log_level, upper=True)
    s.seed = _int(env, "JUNQI_SEED", None)
    for seat in Seat:
        key = f"JUNQI_PERSONA_{seat.name}"
        raw = env.get(key)
        if raw is None or raw.strip() == "":
            continue
        persona = Persona.from_name(raw)
        if persona is None:
            logger.warning(f"[CONFIG] {key}={raw!r} 不是已知人格，使用 BALANCED")
            persona = Persona.BALANCED
        s.personas[seat] = persona
    return s
