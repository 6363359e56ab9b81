from typing import Any, Optional
from datetime import datetime
from decimal import Decimal
import uuid
from pydantic import field_validator
from sqlmodel import Field, SQLModel, Column, JSON

class ContactDetails(SQLModel):
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None

    @field_validator("phone", "email", "address", mode="before")
    @classmethod
    def scalar_as_text(cls, v: Any) -> Optional[str]:
        # Older rows hold numbers or nested objects here
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
            return str(v)
        return None

class Broker(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    # Stored schemaless; always read back through ContactDetails
    contact_details: dict = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

class BrokerRead(SQLModel):
    id: uuid.UUID
    name: str
    contact_details: ContactDetails = ContactDetails()

    @field_validator("contact_details", mode="before")
    @classmethod
    def mapping_or_empty(cls, v: Any) -> Any:
        if v is None or not isinstance(v, (dict, ContactDetails)):
            return {}
        return v
