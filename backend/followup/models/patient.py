import uuid

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from followup.database import Base


class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = Column(String(200), nullable=False, index=True)
    cns = Column(String(20), index=True)          # national health card number
    phone = Column(String(20))
    address = Column(Text)
    territory = Column(String(100))
    manual_priority = Column(String(10))          # Priority value, NULL = unassigned
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    records = relationship("MedicalRecord", back_populates="patient")
    appointments = relationship("Appointment", back_populates="patient")
    visits = relationship("CommunityVisit", back_populates="patient")
