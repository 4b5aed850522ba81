"""
VAC Package

Wires discord.py gateway events into the voice auto creation service.
"""

from .events import VacEvents

__all__ = ["VacEvents"]
