from pydantic import BaseModel, EmailStr, Field
from typing import Literal, Optional
from datetime import datetime

Role = Literal["admin", "farmer", "customer", "agent"]

# Optional personal details stored alongside the account
class Profile(BaseModel):
    firstName: Optional[str] = ""
    lastName: Optional[str] = ""
    phone: Optional[str] = ""
    address: Optional[str] = ""

# Schema for user registration requests
class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=6, max_length=72)
    role: Role = "customer"  # default role
    profile: Optional[Profile] = None

# Schema for profile edits; only the fields sent are written
class UserUpdate(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=72)
    profile: Optional[Profile] = None
    isActive: Optional[bool] = None

# Schema for administrative role updates
class RoleUpdate(BaseModel):
    role: Role

# Output schema for user details (never includes the password hash)
class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    role: Role
    profile: Optional[Profile] = None
    isActive: Optional[bool] = True
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None
