import uuid

from db.database import Base
from sqlalchemy import Column, DateTime, String, Uuid
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func


class User(Base):
    """
    Local mirror of a user known to the external identity provider.

    Rows are created the first time a verified token for the user is seen;
    the id is the token's `sub` claim. Nothing here stores credentials.
    """
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(320), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    sequences = relationship(
        "Sequence", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User(id={self.id})>"
