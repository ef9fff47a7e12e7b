"""
Certificate Template Model
Canvas settings plus the element list, stored as JSON
"""

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, JSON, func
from fibq_certify.database import Base


class CertificateTemplate(Base):
    __tablename__ = "certificate_templates"

    id = Column(String(100), primary_key=True)
    name = Column(String(100), nullable=False)

    # Canvas
    background_color = Column(String(32), nullable=False, default="#FFFFFF")
    accent_color = Column(String(32), nullable=False, default="#C9A227")
    background_image = Column(Text, nullable=True)
    border_style = Column(String(20), nullable=False, default="classic")
    width = Column(Integer, nullable=False, default=800)
    height = Column(Integer, nullable=False, default=566)
    show_seal = Column(Boolean, default=True)
    show_qr_code = Column(Boolean, default=True)

    # Elements in paint order (camelCase JSON)
    elements = Column(JSON, nullable=False, default=list)

    # Metadata
    is_system = Column(Boolean, default=False)
    is_default = Column(Boolean, default=False)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
