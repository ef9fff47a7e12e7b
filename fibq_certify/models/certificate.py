"""
Certificate Model
Issued certificates, looked up by number for public verification
"""

from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, func
import uuid
from fibq_certify.database import Base


class Certificate(Base):
    __tablename__ = "certificates"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    certificate_number = Column(String(20), unique=True, nullable=False, index=True)
    certificate_type = Column(String(30), nullable=True)
    status = Column(String(20), nullable=False, default="valid")

    # Subject
    trainee_name = Column(String(200), nullable=False)
    trainee_photo = Column(Text, nullable=True)
    trainer_name = Column(String(200), nullable=True)
    trainer_photo = Column(Text, nullable=True)
    center_name = Column(String(200), nullable=True)
    center_logo = Column(Text, nullable=True)

    # Descriptive
    certificate_title = Column(Text, nullable=True)
    training_program_name = Column(String(300), nullable=False)
    atc_code = Column(String(20), nullable=True)
    date_of_issue = Column(String(10), nullable=False)
    place_of_issue = Column(String(200), nullable=True)
    expiry_date = Column(String(10), nullable=True)

    # Issuer
    chairperson_name = Column(String(200), nullable=True)
    chairperson_title = Column(String(200), nullable=True)
    legal_disclaimer = Column(Text, nullable=True)

    # Display
    show_seal = Column(Boolean, nullable=True)
    show_qr_code = Column(Boolean, nullable=True)
    template_id = Column(String(100), ForeignKey("certificate_templates.id", ondelete="SET NULL"), nullable=True)

    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
