"""
Utility Module for Encounter Shuffle
====================================

Components:
    - SeededRandom: deterministic RNG shared by a whole shuffle run
"""

from .rng import SeededRandom

__all__ = [
    'SeededRandom',
]
