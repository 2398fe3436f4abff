"""SQLAlchemy ORM models. Importing this package registers every table."""

from coop_kernel.models.cash import DonationModel, ExpenseModel
from coop_kernel.models.dues import DueModel
from coop_kernel.models.loan import LoanModel, LoanPaymentModel
from coop_kernel.models.member import MemberModel

__all__ = [
    "DonationModel",
    "DueModel",
    "ExpenseModel",
    "LoanModel",
    "LoanPaymentModel",
    "MemberModel",
]
