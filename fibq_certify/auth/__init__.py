"""
Authentication Module
Password hashing and JWT token management
"""

from fibq_certify.auth.password import hash_password, verify_password, generate_random_password
from fibq_certify.auth.dependencies import (
    create_access_token,
    decode_access_token,
    get_current_user,
    get_admin
)

__all__ = [
    "hash_password",
    "verify_password",
    "generate_random_password",
    "create_access_token",
    "decode_access_token",
    "get_current_user",
    "get_admin",
]
