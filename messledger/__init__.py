"""
Mess Ledger - Source Package

A ledger for a shared mess (or a single person): deposits into a common
fund, shopping expenses, and daily meal attendance, reconciled into a
meal rate and per-member balances.

DESIGN PRINCIPLES:
1. Assistant suggests → Human confirms → Ledger records
2. Fail early, fail visibly
3. Every number is recomputed from the records, never cached
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Mess Ledger Team"
