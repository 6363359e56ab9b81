from typing import Optional
from datetime import datetime
import uuid
from sqlmodel import Field, SQLModel

class CompanyBase(SQLModel):
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

class Company(CompanyBase, table=True):
    """A recruitment agency: the tenant every other row belongs to."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

class CompanyRead(CompanyBase):
    id: uuid.UUID
