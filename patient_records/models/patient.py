from sqlalchemy import Column, String, ForeignKey, DateTime, Float, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base, generate_uuid

class Patient(Base):
    __tablename__ = "patients"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    # One patient record per user
    user_id = Column(String(36), ForeignKey("users.id"), unique=True, nullable=False)

    # Medical information
    medical_record = Column(Text, nullable=True)
    blood_type = Column(Text, nullable=True, index=True)
    allergies = Column(Text, nullable=True)
    chronic_diseases = Column(Text, nullable=True)

    # Emergency contact
    emergency_contact = Column(Text, nullable=True)
    emergency_phone = Column(Text, nullable=True)

    # Body measurements (cm / kg)
    height = Column(Float, nullable=True)
    weight = Column(Float, nullable=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    user = relationship("User", back_populates="patient")

    def __repr__(self):
        return f"<Patient(id={self.id}, user_id='{self.user_id}')>"
