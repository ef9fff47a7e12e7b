"""
Admin User Model
Accounts that can sign in to the admin panel
"""

from sqlalchemy import Column, String, Boolean, DateTime, func
import uuid
from fibq_certify.database import Base


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=True)

    # Status
    is_admin = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True)
    last_login = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
