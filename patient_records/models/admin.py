from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base, generate_uuid
from ..core.security import AdminRole

class Admin(Base):
    __tablename__ = "admins"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(
        SQLEnum(AdminRole, values_callable=lambda roles: [role.value for role in roles]),
        nullable=False,
        default=AdminRole.ADMIN,
    )
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())

    permissions = relationship(
        "AdminPermission", back_populates="admin", cascade="all, delete-orphan"
    )

    def permission_level(self, resource: str) -> int:
        """Granted level for ``resource``, 0 when there is no grant."""
        for permission in self.permissions:
            if permission.resource == resource:
                return permission.level
        return 0

    def __repr__(self):
        return f"<Admin(id={self.id}, email='{self.email}', role='{self.role}')>"

class AdminPermission(Base):
    __tablename__ = "admin_permissions"
    __table_args__ = (UniqueConstraint("admin_id", "resource", name="uq_admin_permission_resource"),)

    id = Column(Integer, primary_key=True, index=True)
    admin_id = Column(String(36), ForeignKey("admins.id", ondelete="CASCADE"), nullable=False, index=True)
    resource = Column(String(100), nullable=False)
    level = Column(Integer, nullable=False, default=1)

    admin = relationship("Admin", back_populates="permissions")

    def __repr__(self):
        return f"<AdminPermission(admin_id={self.admin_id}, resource='{self.resource}', level={self.level})>"
