"""
MoneySaver - Ledger Core

Personal finance tracking: income/expense transactions, monthly
recurring transactions and savings goals.

DESIGN PRINCIPLES:
1. The engine is pure; only the flows touch storage
2. A recurring rule generates at most one transaction per month
3. Refresh degrades instead of failing: log, continue, report
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "MoneySaver Team"
