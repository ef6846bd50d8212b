# app/models/activity_models.py
from sqlalchemy import Column, Integer, String, DateTime
from app.core.db import Base
from app.models.quotation_models import utcnow


class UserActivity(Base):
    __tablename__ = "user_activity"

    id = Column(Integer, primary_key=True, index=True)
    actor_role = Column(String(50), nullable=False, index=True)
    actor_id = Column(Integer, nullable=True, index=True)

    message = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
