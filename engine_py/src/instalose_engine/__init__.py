"""
Insta-Lose game engine: rules state machine, game store and real-time
state fan-out.
"""

__version__ = "1.0.0"
