from sqlalchemy import Column, Integer, String, UniqueConstraint
from followup.database import Base


class UserRole(Base):
    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False)  # "doctor" | "nurse" | "agent"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), unique=True, nullable=False, index=True)
    full_name = Column(String(200), nullable=False)


class UserPermission(Base):
    """Capabilities orthogonal to the operational role (e.g. "director")."""

    __tablename__ = "user_permissions"
    __table_args__ = (UniqueConstraint("user_id", "permission"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    permission = Column(String(30), nullable=False)
