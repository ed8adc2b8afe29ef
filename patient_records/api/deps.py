from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db
from ..core.security import (
    security, verify_token, AuthenticationError, AuthorizationError,
    AdminRole, TokenPayload, ACCESS_TOKEN_TYPE, ADMIN_ACCESS_TOKEN_TYPE
)
from ..models.admin import Admin
from ..models.user import User

def _decode(credentials: HTTPAuthorizationCredentials, token_type: str) -> TokenPayload:
    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    if token_payload.token_type != token_type:
        raise AuthenticationError("Invalid token type")

    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    return token_payload

async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify a user JWT from the Authorization header."""
    return _decode(credentials, ACCESS_TOKEN_TYPE)

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    user = db.query(User).filter(
        User.id == token_payload.sub,
        User.deleted_at.is_(None)
    ).first()
    if not user:
        raise AuthenticationError("User not found")

    return user

async def get_current_admin_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify an admin JWT from the Authorization header."""
    return _decode(credentials, ADMIN_ACCESS_TOKEN_TYPE)

async def get_current_admin(
    token_payload: TokenPayload = Depends(get_current_admin_token),
    db: Session = Depends(get_db)
) -> Admin:
    """Get current authenticated admin from database."""
    admin = db.query(Admin).filter(Admin.id == token_payload.sub).first()
    if not admin:
        raise AuthenticationError("Admin not found")

    if not admin.is_active:
        raise AuthenticationError("Admin account is deactivated")

    return admin

# Role-based access control dependencies
def require_admin_roles(*allowed_roles: AdminRole):
    """Create a dependency that requires specific admin roles."""
    async def role_checker(
        current_admin: Admin = Depends(get_current_admin)
    ) -> Admin:
        if current_admin.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return current_admin

    return role_checker

def check_permission(resource: str, level: int, *allowed_roles: AdminRole):
    """Require one of ``allowed_roles`` and at least ``level`` on ``resource``.

    Super Admins pass every level check; other admins need a grant on the
    resource whose level is at least the required one.
    """
    roles = allowed_roles or (AdminRole.SUPER_ADMIN, AdminRole.ADMIN)

    async def permission_checker(
        current_admin: Admin = Depends(require_admin_roles(*roles))
    ) -> Admin:
        if current_admin.role == AdminRole.SUPER_ADMIN:
            return current_admin

        if current_admin.permission_level(resource) < level:
            raise AuthorizationError(
                f"Access denied. Requires level {level} permission on '{resource}'"
            )
        return current_admin

    return permission_checker

def patient_permission(level: int, *allowed_roles: AdminRole):
    return check_permission(settings.PATIENT_RESOURCE, level, *allowed_roles)
