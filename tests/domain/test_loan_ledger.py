"""
Loan ledger: lifecycle transitions, payment application, reversal and the
installment schedule.
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from coop_kernel.domain.dtos import LoanPayment, LoanStatus, PaymentStatus
from coop_kernel.domain.loan_ledger import (
    add_months,
    apply_payment,
    approve_loan,
    ledger_drift,
    originate_loan,
    recompute_outstanding,
    reject_loan,
    reverse_payment,
    schedule_for,
    scheduled_due_date,
    suggest_payment,
)
from coop_kernel.domain.values import Money, sum_money
from coop_kernel.exceptions import (
    DuplicateInstallmentError,
    InvalidLoanTermsError,
    InvalidLoanTransitionError,
    InvalidPaymentError,
    LoanNotActiveError,
    OverpaymentError,
    PaymentNotFoundError,
)
from tests.conftest import idr, make_loan

ZERO = Money.zero("IDR")


def pay(loan, payments, number, principal="1000000", interest="0", on=None, **kw):
    """Apply one installment and return (loan, payments + [new payment])."""
    on = on or scheduled_due_date(loan, number)
    updated, payment = apply_payment(
        loan, payments, number,
        idr(principal) if principal is not None else None,
        idr(interest), on, **kw,
    )
    return updated, [*payments, payment]


class TestAddMonths:

    def test_plain_month(self):
        assert add_months(date(2024, 1, 15), 1) == date(2024, 2, 15)

    def test_crosses_year(self):
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)

    def test_clamps_to_leap_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)

    def test_clamps_to_thirty_day_month(self):
        assert add_months(date(2024, 3, 31), 1) == date(2024, 4, 30)


class TestLifecycle:

    def test_originate_creates_pending_loan(self):
        member_id = uuid4()
        loan = originate_loan(member_id, idr("10000000"), "12", 10, date(2024, 1, 15))
        assert loan.status == LoanStatus.PENDING
        assert loan.member_id == member_id
        assert loan.monthly_installment == idr("1000000")
        assert loan.outstanding_balance == idr("10000000")
        assert loan.annual_rate_percent == Decimal("12")

    def test_originate_rejects_bad_terms(self):
        with pytest.raises(InvalidLoanTermsError):
            originate_loan(uuid4(), idr("10000000"), "12", 0, date(2024, 1, 15))

    def test_approve_pending(self):
        loan = make_loan(status=LoanStatus.PENDING)
        assert approve_loan(loan).status == LoanStatus.ACTIVE

    def test_reject_pending(self):
        loan = make_loan(status=LoanStatus.PENDING)
        assert reject_loan(loan).status == LoanStatus.REJECTED

    @pytest.mark.parametrize(
        "status", [LoanStatus.ACTIVE, LoanStatus.PAID_OFF, LoanStatus.REJECTED],
    )
    def test_only_pending_can_be_approved(self, status):
        with pytest.raises(InvalidLoanTransitionError) as exc_info:
            approve_loan(make_loan(status=status))
        assert exc_info.value.from_status == status.value
        assert exc_info.value.to_status == "active"

    def test_rejected_cannot_be_rejected_again(self):
        with pytest.raises(InvalidLoanTransitionError):
            reject_loan(make_loan(status=LoanStatus.REJECTED))

    def test_transitions_do_not_mutate_input(self):
        loan = make_loan(status=LoanStatus.PENDING)
        approve_loan(loan)
        assert loan.status == LoanStatus.PENDING


class TestApplyPayment:

    def test_reference_scenario(self):
        loan = make_loan()
        payments = []
        for n in (1, 2, 3):
            loan, payments = pay(loan, payments, n)
        assert loan.outstanding_balance == idr("7000000")
        assert loan.status == LoanStatus.ACTIVE
        assert [p.installment_number for p in payments] == [1, 2, 3]

    def test_balance_is_recomputed_not_decremented(self):
        # a stale stored balance is corrected by the next payment
        loan = make_loan(outstanding="9500000")
        updated, _ = pay(loan, [], 1)
        assert updated.outstanding_balance == idr("9000000")

    def test_exact_payoff_sets_paid_off(self):
        loan = make_loan(principal="3000000", tenor=3)
        payments = []
        for n in (1, 2, 3):
            loan, payments = pay(loan, payments, n)
        assert loan.outstanding_balance == ZERO
        assert loan.status == LoanStatus.PAID_OFF

    def test_duplicate_installment_rejected(self):
        loan = make_loan()
        loan, payments = pay(loan, [], 1)
        with pytest.raises(DuplicateInstallmentError) as exc_info:
            pay(loan, payments, 1)
        assert exc_info.value.installment_number == 1

    def test_payments_of_other_loans_ignored(self):
        other = make_loan()
        _, others = pay(other, [], 1)
        loan = make_loan()
        updated, _ = pay(loan, others, 1)
        assert updated.outstanding_balance == idr("9000000")

    def test_overpayment_rejected(self):
        loan = make_loan(principal="1500000", tenor=2)
        loan, payments = pay(loan, [], 1)
        with pytest.raises(OverpaymentError) as exc_info:
            pay(loan, payments, 2, principal="600000")
        assert exc_info.value.outstanding == str(idr("500000"))

    def test_payoff_caps_principal(self):
        loan = make_loan(principal="1500000", tenor=2)
        loan, payments = pay(loan, [], 1)
        loan, payments = pay(loan, payments, 2, principal="600000", payoff=True)
        assert payments[-1].principal_portion == idr("500000")
        assert loan.status == LoanStatus.PAID_OFF

    def test_payoff_without_principal_takes_balance(self):
        loan = make_loan()
        loan, payments = pay(loan, [], 1, principal=None, payoff=True)
        assert payments[-1].principal_portion == idr("10000000")
        assert loan.outstanding_balance == ZERO

    def test_principal_required_outside_payoff(self):
        with pytest.raises(InvalidPaymentError):
            pay(make_loan(), [], 1, principal=None)

    @pytest.mark.parametrize("number", [0, -1])
    def test_installment_below_one_rejected(self, number):
        with pytest.raises(InvalidPaymentError):
            apply_payment(
                make_loan(), [], number, idr("1000000"), ZERO, date(2024, 2, 15),
            )

    def test_negative_principal_rejected(self):
        with pytest.raises(InvalidPaymentError):
            pay(make_loan(), [], 1, principal="-1")

    def test_negative_interest_rejected(self):
        with pytest.raises(InvalidPaymentError):
            pay(make_loan(), [], 1, interest="-1")

    def test_payment_before_origination_rejected(self):
        loan = make_loan(origination=date(2024, 3, 15))
        with pytest.raises(InvalidPaymentError) as exc_info:
            pay(loan, [], 1, on=date(2024, 3, 1))
        assert exc_info.value.reason == "payment_date precedes origination"

    def test_payment_on_origination_day_accepted(self):
        loan = make_loan(origination=date(2024, 3, 15))
        updated, payments = pay(loan, [], 1, on=date(2024, 3, 15))
        assert payments[0].status == PaymentStatus.ON_TIME
        assert updated.outstanding_balance == idr("9000000")

    @pytest.mark.parametrize(
        "status", [LoanStatus.PENDING, LoanStatus.PAID_OFF, LoanStatus.REJECTED],
    )
    def test_only_active_loans_take_payments(self, status):
        with pytest.raises(LoanNotActiveError) as exc_info:
            pay(make_loan(status=status), [], 1)
        assert exc_info.value.status == status.value

    def test_zero_principal_interest_only_installment(self):
        loan = make_loan()
        updated, payments = pay(loan, [], 1, principal="0", interest="100000")
        assert updated.outstanding_balance == idr("10000000")
        assert payments[0].total == idr("100000")

    def test_rejected_call_changes_nothing(self):
        loan = make_loan()
        loan, payments = pay(loan, [], 1)
        snapshot = list(payments)
        with pytest.raises(OverpaymentError):
            pay(loan, payments, 2, principal="9000001")
        assert payments == snapshot
        assert loan.outstanding_balance == idr("9000000")


class TestLateTagging:

    def test_on_due_date_is_on_time(self):
        loan = make_loan(origination=date(2024, 1, 15))
        _, payments = pay(loan, [], 1, on=date(2024, 2, 15))
        assert payments[0].status == PaymentStatus.ON_TIME

    def test_day_after_due_date_is_late(self):
        loan = make_loan(origination=date(2024, 1, 15))
        _, payments = pay(loan, [], 1, on=date(2024, 2, 16))
        assert payments[0].status == PaymentStatus.LATE

    def test_early_payment_is_on_time(self):
        loan = make_loan(origination=date(2024, 1, 15))
        _, payments = pay(loan, [], 3, on=date(2024, 1, 20))
        assert payments[0].status == PaymentStatus.ON_TIME

    def test_due_date_clamped_to_month_end(self):
        loan = make_loan(origination=date(2024, 1, 31))
        _, on_time = pay(loan, [], 1, on=date(2024, 2, 29))
        _, late = pay(loan, [], 1, on=date(2024, 3, 1))
        assert on_time[0].status == PaymentStatus.ON_TIME
        assert late[0].status == PaymentStatus.LATE


class TestReversePayment:

    def test_reference_scenario_reversal(self):
        loan = make_loan()
        payments = []
        for n in (1, 2, 3):
            loan, payments = pay(loan, payments, n)
        reversed_loan = reverse_payment(loan, payments, payments[2].id)
        assert reversed_loan.outstanding_balance == idr("8000000")
        assert reversed_loan.status == LoanStatus.ACTIVE

    def test_reversal_reopens_paid_off_loan(self):
        loan = make_loan(principal="2000000", tenor=2)
        loan, payments = pay(loan, [], 1)
        loan, payments = pay(loan, payments, 2)
        assert loan.status == LoanStatus.PAID_OFF

        reopened = reverse_payment(loan, payments, payments[1].id)
        assert reopened.status == LoanStatus.ACTIVE
        assert reopened.outstanding_balance == idr("1000000")

    def test_apply_then_reverse_restores_loan(self):
        loan = make_loan()
        loan, payments = pay(loan, [], 1)
        after, with_second = pay(loan, payments, 2)
        restored = reverse_payment(after, with_second, with_second[-1].id)
        assert restored == loan

    def test_unknown_payment_rejected(self):
        loan = make_loan()
        with pytest.raises(PaymentNotFoundError):
            reverse_payment(loan, [], uuid4())

    def test_payment_of_another_loan_rejected(self):
        other = make_loan()
        _, others = pay(other, [], 1)
        with pytest.raises(PaymentNotFoundError):
            reverse_payment(make_loan(), others, others[0].id)

    def test_reversed_installment_can_be_paid_again(self):
        loan = make_loan()
        loan, payments = pay(loan, [], 1)
        loan = reverse_payment(loan, payments, payments[0].id)
        updated, _ = pay(loan, [], 1)
        assert updated.outstanding_balance == idr("9000000")


class TestRecomputation:

    def test_recompute_floors_at_zero(self):
        loan = make_loan(principal="1000000", tenor=1)
        excess = LoanPayment(
            loan_id=loan.id, installment_number=1,
            principal_portion=idr("1200000"), interest_portion=ZERO,
            payment_date=date(2024, 2, 15),
        )
        assert recompute_outstanding(loan, [excess]) == ZERO

    def test_drift_zero_for_consistent_loan(self):
        loan = make_loan()
        loan, payments = pay(loan, [], 1)
        assert ledger_drift(loan, payments) == ZERO

    def test_drift_reports_stale_balance(self):
        loan = make_loan(outstanding="9500000")
        assert ledger_drift(loan, []) == idr("-500000")


class TestSuggestPayment:

    def test_installment_and_one_month_interest(self):
        loan = make_loan(outstanding="8000000")
        assert suggest_payment(loan) == (idr("1000000"), idr("80000"))

    def test_principal_capped_at_remaining(self):
        loan = make_loan(outstanding="400000")
        principal, interest = suggest_payment(loan)
        assert principal == idr("400000")
        assert interest == idr("4000")


class TestSchedule:

    def test_length_matches_tenor(self):
        schedule = schedule_for(make_loan(tenor=10))
        assert len(schedule) == 10
        assert len(list(schedule)) == 10

    def test_numbers_and_due_dates(self):
        entries = list(schedule_for(make_loan(tenor=3, origination=date(2024, 1, 31))))
        assert [e.installment_number for e in entries] == [1, 2, 3]
        assert [e.expected_due_date for e in entries] == [
            date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30),
        ]

    def test_last_installment_absorbs_remainder(self):
        # 1,000,000 / 3 rounds to 333,333.33
        loan = make_loan(principal="1000000", tenor=3)
        entries = list(schedule_for(loan))
        assert [e.expected_principal for e in entries] == [
            idr("333333.33"), idr("333333.33"), idr("333333.34"),
        ]

    def test_rounded_up_installment_does_not_overshoot(self):
        # 0.05 / 2 rounds up to 0.03, leaving 0.02 for the last installment
        loan = make_loan(principal="0.05", tenor=2)
        entries = list(schedule_for(loan))
        assert [e.expected_principal for e in entries] == [idr("0.03"), idr("0.02")]

    def test_schedule_sums_to_principal(self):
        loan = make_loan(principal="7777777.77", tenor=17)
        total = sum_money((e.expected_principal for e in schedule_for(loan)), "IDR")
        assert total == loan.principal

    def test_restartable(self):
        schedule = schedule_for(make_loan(tenor=4))
        assert list(schedule) == list(schedule)

    def test_lazy(self):
        iterator = iter(schedule_for(make_loan(tenor=240)))
        first = next(iterator)
        assert first.installment_number == 1
