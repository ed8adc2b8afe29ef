from .user import User
from .patient import Patient
from .admin import Admin, AdminPermission

__all__ = ["User", "Patient", "Admin", "AdminPermission"]
