"""
Typed Exception Hierarchy for the Cooperative Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The UI and report layers translate engine failures into user-facing
messages.  They must be able to do that by catching a type and reading
structured attributes, never by parsing message strings:

    try:
        engine.record_payment(loan_id, 4, Money.of("1000000", "IDR"), date)
    except DuplicateInstallmentError as e:
        show_error(f"Angsuran ke-{e.installment_number} sudah dibayar")
    except OverpaymentError as e:
        show_error(f"Sisa pinjaman hanya {e.outstanding}")

Every exception has:
  1. A class-level ``code`` (machine-readable, API-safe).
  2. Structured attributes carrying the data needed to explain the error.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CooperativeLedgerError (base)
    |
    +-- LoanError
    |   +-- InvalidLoanTermsError
    |   +-- LoanNotFoundError
    |   +-- LoanNotActiveError
    |   +-- InvalidLoanTransitionError
    |
    +-- PaymentError
    |   +-- DuplicateInstallmentError
    |   +-- OverpaymentError
    |   +-- InvalidPaymentError
    |   +-- PaymentNotFoundError
    |
    +-- RepositoryError
    |   +-- ConstraintViolationError
    |
    +-- ReconciliationError
    |   +-- BalanceMismatchError
    |   +-- InvalidPeriodError
    |
    +-- CurrencyError
        +-- CurrencyMismatchError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                     | When Raised
----------------|--------------------------|-----------------------------------------
Loan            | INVALID_LOAN_TERMS       | principal/tenor/rate out of range
                | LOAN_NOT_FOUND           | Loan ID doesn't exist
                | LOAN_NOT_ACTIVE          | Payment against non-active loan
                | INVALID_LOAN_TRANSITION  | e.g. approving a rejected loan
----------------|--------------------------|-----------------------------------------
Payment         | DUPLICATE_INSTALLMENT    | installment_number already paid
                | OVERPAYMENT              | principal exceeds outstanding balance
                | INVALID_PAYMENT          | negative portion, installment < 1
                | PAYMENT_NOT_FOUND        | reversal of unknown payment
----------------|--------------------------|-----------------------------------------
Repository      | CONSTRAINT_VIOLATION     | uniqueness constraint in the store
----------------|--------------------------|-----------------------------------------
Reconciliation  | BALANCE_MISMATCH         | assets != liabilities + equity
                | INVALID_PERIOD           | period end before period start
----------------|--------------------------|-----------------------------------------
Currency        | CURRENCY_MISMATCH        | Money of different currencies mixed

===============================================================================
HANDLING PATTERNS
===============================================================================

1. BalanceMismatchError is RETURNED, not raised, by reconciliation so the
   non-balancing statement stays inspectable:

    result = engine.reconcile_period(start, end)
    if result.error is not None:
        alert_treasurer(result.error.delta, result.statement)

2. ConstraintViolationError comes from the store.  The ledger checks
   duplicates itself first; the store constraint is the last line for
   concurrent writers that bypassed the per-loan lock.
"""


class CooperativeLedgerError(Exception):
    """
    Base exception for all cooperative ledger errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "COOPERATIVE_LEDGER_ERROR"


# Loan-related exceptions


class LoanError(CooperativeLedgerError):
    """Base exception for loan-related errors."""

    code: str = "LOAN_ERROR"


class InvalidLoanTermsError(LoanError):
    """Principal, rate or tenor is outside the accepted range."""

    code: str = "INVALID_LOAN_TERMS"

    def __init__(self, field: str, value: str, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid loan terms: {field}={value} ({reason})")


class LoanNotFoundError(LoanError):
    """Loan with given ID was not found."""

    code: str = "LOAN_NOT_FOUND"

    def __init__(self, loan_id: str):
        self.loan_id = loan_id
        super().__init__(f"Loan not found: {loan_id}")


class LoanNotActiveError(LoanError):
    """Payments can only be applied to active loans."""

    code: str = "LOAN_NOT_ACTIVE"

    def __init__(self, loan_id: str, status: str):
        self.loan_id = loan_id
        self.status = status
        super().__init__(f"Loan {loan_id} is {status}, not active")


class InvalidLoanTransitionError(LoanError):
    """Requested lifecycle transition is not allowed from the current status."""

    code: str = "INVALID_LOAN_TRANSITION"

    def __init__(self, loan_id: str, from_status: str, to_status: str):
        self.loan_id = loan_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Loan {loan_id} cannot transition from {from_status} to {to_status}"
        )


# Payment-related exceptions


class PaymentError(CooperativeLedgerError):
    """Base exception for installment payment errors."""

    code: str = "PAYMENT_ERROR"


class DuplicateInstallmentError(PaymentError):
    """Installment number already has a recorded payment for this loan."""

    code: str = "DUPLICATE_INSTALLMENT"

    def __init__(self, loan_id: str, installment_number: int):
        self.loan_id = loan_id
        self.installment_number = installment_number
        super().__init__(
            f"Installment {installment_number} of loan {loan_id} is already paid"
        )


class OverpaymentError(PaymentError):
    """Principal portion exceeds the loan's outstanding balance."""

    code: str = "OVERPAYMENT"

    def __init__(self, loan_id: str, principal_portion: str, outstanding: str):
        self.loan_id = loan_id
        self.principal_portion = principal_portion
        self.outstanding = outstanding
        super().__init__(
            f"Principal {principal_portion} exceeds outstanding balance "
            f"{outstanding} of loan {loan_id}"
        )


class InvalidPaymentError(PaymentError):
    """Payment fields are malformed (negative portion, installment < 1)."""

    code: str = "INVALID_PAYMENT"

    def __init__(self, loan_id: str, reason: str):
        self.loan_id = loan_id
        self.reason = reason
        super().__init__(f"Invalid payment for loan {loan_id}: {reason}")


class PaymentNotFoundError(PaymentError):
    """Payment with given ID is not recorded against the loan."""

    code: str = "PAYMENT_NOT_FOUND"

    def __init__(self, loan_id: str, payment_id: str):
        self.loan_id = loan_id
        self.payment_id = payment_id
        super().__init__(f"Payment {payment_id} not found on loan {loan_id}")


# Repository exceptions


class RepositoryError(CooperativeLedgerError):
    """Base exception for persistence-layer failures."""

    code: str = "REPOSITORY_ERROR"


class ConstraintViolationError(RepositoryError):
    """
    The store rejected a write because of a uniqueness constraint.

    Raised for a second Due in the same (member, month, year) or a second
    payment with the same installment number on one loan.
    """

    code: str = "CONSTRAINT_VIOLATION"

    def __init__(self, entity: str, constraint: str, detail: str = ""):
        self.entity = entity
        self.constraint = constraint
        self.detail = detail
        message = f"Constraint {constraint} violated on {entity}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


# Reconciliation exceptions


class ReconciliationError(CooperativeLedgerError):
    """Base exception for period reconciliation errors."""

    code: str = "RECONCILIATION_ERROR"


class BalanceMismatchError(ReconciliationError):
    """
    Balance sheet does not satisfy assets == liabilities + equity.

    ``delta`` is assets minus (liabilities + equity), as a string in major
    units of ``currency``.
    """

    code: str = "BALANCE_MISMATCH"

    def __init__(
        self,
        period_start: str,
        period_end: str,
        total_assets: str,
        total_liabilities_and_equity: str,
        delta: str,
        currency: str,
    ):
        self.period_start = period_start
        self.period_end = period_end
        self.total_assets = total_assets
        self.total_liabilities_and_equity = total_liabilities_and_equity
        self.delta = delta
        self.currency = currency
        super().__init__(
            f"Balance sheet for {period_start}..{period_end} does not balance: "
            f"assets={total_assets} liabilities+equity="
            f"{total_liabilities_and_equity} delta={delta} {currency}"
        )


class InvalidPeriodError(ReconciliationError):
    """Period end precedes period start."""

    code: str = "INVALID_PERIOD"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Invalid period: end {end} is before start {start}")


# Currency exceptions


class CurrencyError(CooperativeLedgerError):
    """Base exception for currency errors."""

    code: str = "CURRENCY_ERROR"


class CurrencyMismatchError(CurrencyError):
    """Operation mixed Money of different currencies."""

    code: str = "CURRENCY_MISMATCH"

    def __init__(self, left: str, right: str, operation: str):
        self.left = left
        self.right = right
        self.operation = operation
        super().__init__(
            f"Cannot {operation} Money with different currencies: {left} and {right}"
        )
