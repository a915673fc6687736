"""
Fudge Roll - target-seeking d20 rolls for tabletop RPG checks.
"""

__version__ = "0.1.0"
