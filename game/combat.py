#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
战斗结算：纯函数，真实落子与搜索模拟共用同一套规则。

判定顺序：
1. 任一方为炸弹：同归于尽（炸军旗也一样，军旗随之消失）。
2. 工兵攻击地雷：工兵存活；其他棋子攻击地雷：进攻方阵亡，地雷保留。
3. 被攻击方为军旗：进攻方存活，夺旗。
4. 其余按等级比大小，等级相同同归于尽。
任一方司令阵亡时标记 is_commander_death，由调用方翻明其军旗。
"""

from dataclasses import dataclass

from .piece import Piece, PieceType

OUTCOME_ATTACKER_WINS = "attack_attacker_wins"
OUTCOME_DEFENDER_WINS = "attack_defender_wins"
OUTCOME_BOTH_DIE = "attack_both_die"


@dataclass(frozen=True)
class BattleOutcome:
    attacker_survives: bool
    defender_survives: bool
    is_flag_capture: bool = False
    is_commander_death: bool = False

    @property
    def label(self) -> str:
        if self.attacker_survives:
            return OUTCOME_ATTACKER_WINS
        if self.defender_survives:
            return OUTCOME_DEFENDER_WINS
        return OUTCOME_BOTH_DIE


def resolve(attacker: Piece, defender: Piece) -> BattleOutcome:
    """结算一次进攻"""
    if attacker.is_bomb() or defender.is_bomb():
        attacker_survives, defender_survives = False, False
    elif defender.is_mine():
        attacker_survives = attacker.is_engineer()
        defender_survives = not attacker_survives
    elif defender.piece_type == PieceType.FLAG:
        return BattleOutcome(True, False, is_flag_capture=True)
    elif attacker.rank > defender.rank:
        attacker_survives, defender_survives = True, False
    elif attacker.rank < defender.rank:
        attacker_survives, defender_survives = False, True
    else:
        attacker_survives, defender_survives = False, False

    commander_death = (attacker.is_commander() and not attacker_survives) or (
        defender.is_commander() and not defender_survives
    )
    return BattleOutcome(attacker_survives, defender_survives, False, commander_death)
