"""User profile model."""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, String, func

from ..core.enums import RoleName
from ..database import Base


class Profile(Base):
    """
    Participant profile keyed by the identity provider's user id.

    Rows are created lazily by the user (or by an auth trigger), so a user may
    hold bookings without a profile row. Read views must tolerate that.
    """

    __tablename__ = "profiles"

    __table_args__ = (
        CheckConstraint("role IN ('user', 'admin')", name="ck_profiles_role"),
        CheckConstraint(
            "gender IS NULL OR gender IN ('male', 'female', 'other', 'prefer_not_to_say')",
            name="ck_profiles_gender",
        ),
        CheckConstraint(
            "age_group IS NULL OR age_group IN ('10s', '20s', '30s', '40s', '50s', '60s_plus')",
            name="ck_profiles_age_group",
        ),
    )

    id = Column(String(36), primary_key=True)
    nickname = Column(String(50), nullable=True)
    phone = Column(String(20), nullable=True)
    gender = Column(String(20), nullable=True)
    age_group = Column(String(10), nullable=True)
    area = Column(String(100), nullable=True)
    role = Column(String(10), nullable=False, default=RoleName.USER.value)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN.value

    def __repr__(self) -> str:
        return f"<Profile {self.id} role={self.role}>"
