"""
Pure domain layer: money, loan terms, the loan ledger and dues aggregation.

Nothing in this package performs I/O.
"""

from coop_kernel.domain.amortization import (
    AmortizationResult,
    compute_amortization,
    installment_interest,
)
from coop_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from coop_kernel.domain.dtos import (
    AuthorizationStatus,
    Donation,
    Due,
    DueStatus,
    Expense,
    Loan,
    LoanPayment,
    LoanStatus,
    Member,
    MemberStatus,
    PaymentStatus,
    Period,
)
from coop_kernel.domain.values import Currency, Money, sum_money

__all__ = [
    "AmortizationResult",
    "AuthorizationStatus",
    "Clock",
    "Currency",
    "DeterministicClock",
    "Donation",
    "Due",
    "DueStatus",
    "Expense",
    "Loan",
    "LoanPayment",
    "LoanStatus",
    "Member",
    "MemberStatus",
    "Money",
    "PaymentStatus",
    "Period",
    "SystemClock",
    "compute_amortization",
    "installment_interest",
    "sum_money",
]
