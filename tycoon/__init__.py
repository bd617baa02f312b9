"""Turbo Tycoon engine package.

Public API:
    from tycoon import EngineSim, GameSession, GameState, RevResult, OfflineReport
"""
from tycoon.entities import GameState, OfflineReport, Rejection, RevResult
from tycoon.session import GameSession
from tycoon.simulation import EngineSim, apply_offline_earnings

__all__ = [
    "EngineSim",
    "GameSession",
    "GameState",
    "OfflineReport",
    "Rejection",
    "RevResult",
    "apply_offline_earnings",
]
