"""
Cooperative Ledger Kernel

Loan ledger and period reconciliation for a savings-and-loan cooperative:
- Integer minor-unit money arithmetic
- Flat-rate amortization and per-installment interest
- Loan balances recomputed from the full payment history
- Dues aggregation over calendar-month periods
"""

__version__ = "0.1.0"
