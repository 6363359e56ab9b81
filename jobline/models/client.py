from typing import Optional
from datetime import datetime
import uuid
from sqlmodel import Field, SQLModel

class Client(SQLModel, table=True):
    """An employer (guarantor) household or business hiring through the agency."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
