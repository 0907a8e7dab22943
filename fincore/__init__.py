"""
Personal Finance Core - Source Package

The calculation and recurring-obligation engine behind a personal
finance tracker: SIP projections, goal tracking, budget allocation,
net worth, and the daily job that turns recurring rules and salary
into ledger entries.

DESIGN PRINCIPLES:
1. Plain records in, plain records out
2. Storage is injected, never global
3. Degenerate arithmetic returns a number, not an exception
4. Every ledger write made by the engine is auditable
5. One bad rule never blocks the rest of the batch
"""

__version__ = "1.0.0"
__author__ = "Personal Finance Core Team"
