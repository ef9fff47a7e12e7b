"""
Authentication Routes
Admin login and current user endpoints
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from databases import Database

from fibq_certify.auth import create_access_token, get_current_user, verify_password
from fibq_certify.database import get_database
from fibq_certify.schemas.admin import CurrentUserResponse, LoginRequest, LoginResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(credentials: LoginRequest, database: Database = Depends(get_database)):
    """
    Login endpoint for admin users

    Process:
    1. Look the account up by email
    2. Verify password
    3. Create JWT token carrying the admin flag
    4. Update last_login timestamp
    """
    user = await database.fetch_one(
        """
        SELECT id, email, password_hash, full_name, is_admin, is_active
        FROM admin_users
        WHERE email = :email
        """,
        {"email": credentials.email}
    )

    if not user or not verify_password(credentials.password, user["password_hash"]):
        logger.info("Failed login for %s", credentials.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user["is_active"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated. Contact an administrator."
        )

    await database.execute(
        "UPDATE admin_users SET last_login = CURRENT_TIMESTAMP WHERE id = :id",
        {"id": user["id"]}
    )

    is_admin = bool(user["is_admin"])
    access_token = create_access_token({
        "email": user["email"],
        "user_id": str(user["id"]),
        "is_admin": is_admin
    })

    return LoginResponse(
        status="success",
        message="Login successful",
        access_token=access_token,
        is_admin=is_admin
    )


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user_info(current_user: dict = Depends(get_current_user)):
    """Get current authenticated user information"""
    return CurrentUserResponse(**current_user)
