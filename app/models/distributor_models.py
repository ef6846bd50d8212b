# app/models/distributor_models.py
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from app.core.db import Base


class Distributor(Base):
    __tablename__ = "distributors"

    id = Column(Integer, primary_key=True, index=True)

    company_name = Column(String(200), nullable=False, index=True)
    contact_person = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    phone = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    quotation_responses = relationship("QuotationResponse", back_populates="distributor", lazy="noload")
    orders = relationship("Order", back_populates="distributor", lazy="noload")

    def __repr__(self):
        return f"<Distributor(id={self.id}, company_name='{self.company_name}')>"
