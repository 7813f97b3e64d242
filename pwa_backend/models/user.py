"""User model."""

from sqlalchemy import Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from pwa_backend.database import Base
from pwa_backend.models.enums import UserRole
from pwa_backend.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """User model for authentication and push subscription ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(30), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.USER.value)  # 'user', 'admin'
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    subscriptions = relationship(
        "PushSubscription",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="PushSubscription.id",
    )

    @property
    def is_admin(self) -> bool:
        """Check if the user has the admin role."""
        return self.role == UserRole.ADMIN.value
