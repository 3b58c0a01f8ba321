"""
Project-management board game engine.

A CSV-driven rules engine for a turn-based board game about running a
construction project: players move across phase spaces, roll dice, draw
cards and spend money and time until someone reaches the final space.
"""

__version__ = "0.1.0"
