#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AI 人格：四个固定的权重组合（进攻 / 防守 / 机动 / 夺旗）。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class PersonaWeights:
    attack: float = 1.0
    defense: float = 1.0
    mobility: float = 1.0
    flag_capture: float = 1.0


class Persona(Enum):
    BALANCED = "均衡"
    AGGRESSIVE = "单兵猛攻"
    DEFENSIVE = "稳守"
    TEAMMATE_SUPPORT = "助攻队友"

    @property
    def weights(self) -> PersonaWeights:
        return _WEIGHTS[self]

    @classmethod
    def from_name(cls, name: str) -> Optional["Persona"]:
        """按名称（不区分大小写）或中文名解析；无法识别时返回 None"""
        key = (name or "").strip()
        for p in cls:
            if key.upper() == p.name or key == p.value:
                return p
        return None


_WEIGHTS = {
    Persona.BALANCED: PersonaWeights(1.0, 1.0, 1.0, 1.0),
    Persona.AGGRESSIVE: PersonaWeights(1.5, 0.5, 1.0, 1.0),
    Persona.DEFENSIVE: PersonaWeights(0.6, 1.4, 0.8, 1.0),
    Persona.TEAMMATE_SUPPORT: PersonaWeights(2.0, 0.3, 1.2, 2.0),
}
