from typing import Optional
from enum import Enum
import uuid
from sqlmodel import Field, SQLModel, Column, String

class UserRole(str, Enum):
    SUPER_ADMIN = "SUPER_ADMIN" # Agency owner: settings, templates, costs
    ADMIN = "ADMIN" # Office staff: day-to-day case handling

class UserBase(SQLModel):
    email: str = Field(unique=True, index=True)
    full_name: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True)
    role: UserRole = Field(default=UserRole.ADMIN, sa_column=Column(String(20), nullable=False))

class User(UserBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hashed_password: str
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)

class UserRead(SQLModel):
    id: uuid.UUID
    email: str
    full_name: Optional[str] = None
    role: UserRole
    company_id: uuid.UUID
