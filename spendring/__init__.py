"""
SpendRing - Source Package

A personal spending tracker built around a single home screen:
tap to add an expense, double-tap to set a cap, swipe to switch
between "Today" and "This Month", swipe up for the transaction list.

DESIGN PRINCIPLES:
1. Totals are computed, never stored
2. Caps are optional - no cap means no alarm
3. One gesture, one command
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "SpendRing Team"
