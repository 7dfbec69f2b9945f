# backend/models/users.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, func
from models.base import Base, JSONColumn

USER_ROLES = ("admin", "farmer", "customer", "agent")

# Represents a user account: credentials, role and optional profile details
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)  # already hashed by the caller
    role = Column(Enum(*USER_ROLES, name="user_role", create_constraint=True), nullable=False, index=True)

    # firstName / lastName / phone / address
    profile = Column(JSONColumn, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
