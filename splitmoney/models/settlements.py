import uuid
from sqlalchemy.sql import func
from sqlalchemy import Column, String, DateTime, DECIMAL, Text, ForeignKey
from splitmoney.db.database import Base


class Settlement(Base):
    __tablename__ = "settlements"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()), unique=True, nullable=False)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), nullable=False, index=True)
    from_member_id = Column(String, nullable=False, index=True)  # Member who paid
    to_member_id = Column(String, nullable=False, index=True)  # Member who received
    amount = Column(DECIMAL(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    settled_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
