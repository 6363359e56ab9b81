from typing import Optional
from datetime import datetime
from decimal import Decimal
import uuid
from sqlmodel import Field, SQLModel, UniqueConstraint

class FeeTemplateBase(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    default_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    min_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    max_price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", max_length=10)
    nationality: Optional[str] = Field(default=None, max_length=100) # Unset: applies to every nationality
    service_type: Optional[str] = Field(default=None, max_length=255)
    description: Optional[str] = None

class FeeTemplate(FeeTemplateBase, table=True):
    __table_args__ = (
        UniqueConstraint("company_id", "name", name="uq_feetemplate_company_name"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class FeeTemplateCreate(FeeTemplateBase):
    pass

class FeeTemplateRead(FeeTemplateBase):
    id: uuid.UUID
    created_at: datetime

class FeeTemplateUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    default_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    min_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    max_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: Optional[str] = Field(default=None, max_length=10)
    nationality: Optional[str] = None
    service_type: Optional[str] = None
    description: Optional[str] = None

class FeeCheckRequest(SQLModel):
    amount: Decimal = Field(ge=0, max_digits=10, decimal_places=2)

class FeeCheckRead(SQLModel):
    ok: bool
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    currency: Optional[str] = None
