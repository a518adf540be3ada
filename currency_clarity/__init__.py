"""
Currency Clarity - Source Package

A personal expense tracker for households that think in two currencies:
Ariary for everyday prices, FMG for the amounts people still say out loud.

DESIGN PRINCIPLES:
1. Every amount is stored once, in FMG
2. Ariary is a view, never a second source of truth
3. The view engine is pure: records in, view out
4. Fail early, fail visibly
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Currency Clarity Team"
