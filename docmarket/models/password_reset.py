"""Password reset token model."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from docmarket.database import Base


class PasswordResetToken(Base):
    """Single-use reset token. Only the SHA-256 digest of the raw token is stored."""

    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    user = relationship("User", back_populates="reset_tokens")

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at < (now or datetime.utcnow())
