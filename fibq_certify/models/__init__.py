"""
Database Models
Import all models here for Alembic migrations
"""

from fibq_certify.models.admin import AdminUser
from fibq_certify.models.template import CertificateTemplate
from fibq_certify.models.certificate import Certificate
from fibq_certify.models.activity_log import ActivityLog

__all__ = [
    "AdminUser",
    "CertificateTemplate",
    "Certificate",
    "ActivityLog",
]
