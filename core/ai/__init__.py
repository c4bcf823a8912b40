"""AI helper modules for the automated opponent."""

from .opponent_ai import OpponentAI

__all__ = ["OpponentAI"]
