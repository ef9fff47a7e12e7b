"""
Admin Request/Response Models
Login, current user and dashboard payloads
"""

from pydantic import BaseModel, EmailStr
from typing import List, Optional

from fibq_certify.schemas.activity_log import ActivityLogEntry
from fibq_certify.schemas.certificate import CertificateData
from fibq_certify.schemas.template import CamelModel


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    status: str
    message: str
    access_token: str
    token_type: str = "bearer"
    is_admin: bool


class CurrentUserResponse(BaseModel):
    email: str
    user_id: Optional[str] = None
    is_admin: bool


class AdminDashboardResponse(CamelModel):
    """Counters and recent items for the admin dashboard"""
    total_certificates: int
    this_month: int
    active_templates: int
    default_template_id: Optional[str] = None
    recent_certificates: List[CertificateData]
    recent_activity: List[ActivityLogEntry] = []
