"""Imperative shell: services that read and write through the repository."""

from coop_kernel.services.loan_service import LoanService, PaymentResult

__all__ = ["LoanService", "PaymentResult"]
