"""
Spendbook - Source Package

A local-only personal expense ledger: dated expenses tagged with
categories, a recoverable trash, budget targets and spending views.

DESIGN PRINCIPLES:
1. Nothing is hard-deleted by default (trash first)
2. Rejected input never mutates state
3. Aggregates are recomputed from current state, never cached
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Spendbook Team"
