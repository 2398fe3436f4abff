"""
Module: coop_kernel.models.member
Responsibility: ORM persistence for cooperative members.  The engine only
    reads members; the membership subsystem owns their lifecycle.
Architecture position: Kernel > Models.  May import from db/base.py only.

Failure modes:
    - IntegrityError on duplicate member_code (uq_member_code constraint).
"""

from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from coop_kernel.db.base import TimestampedBase


class MemberModel(TimestampedBase):
    """A cooperative member (anggota)."""

    __tablename__ = "members"

    __table_args__ = (
        UniqueConstraint("member_code", name="uq_member_code"),
        Index("idx_member_status", "status"),
    )

    member_code: Mapped[str] = mapped_column(String(50), nullable=False)

    display_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # active / inactive / pending
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")

    def __repr__(self) -> str:
        return f"<Member {self.member_code}: {self.display_name}>"
