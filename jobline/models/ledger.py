from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import uuid
from sqlmodel import Field, SQLModel

class Payment(SQLModel, table=True):
    """Money received from the client for an application."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    application_id: uuid.UUID = Field(foreign_key="application.id", index=True)
    client_id: uuid.UUID = Field(foreign_key="client.id", index=True)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", max_length=10)
    payment_date: datetime = Field(default_factory=datetime.utcnow)
    payment_type: str = Field(default="FEE", max_length=50)
    notes: Optional[str] = None
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)

class Cost(SQLModel, table=True):
    """Money the agency spent on an application (agent fees, tickets, government fees)."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    application_id: uuid.UUID = Field(foreign_key="application.id", index=True)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", max_length=10)
    cost_date: datetime = Field(default_factory=datetime.utcnow)
    cost_type: str = Field(default="OTHER", max_length=100)
    description: Optional[str] = None
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)

class PaymentRead(SQLModel):
    id: uuid.UUID
    amount: Decimal
    currency: str
    payment_date: datetime
    payment_type: str

class CostRead(SQLModel):
    id: uuid.UUID
    amount: Decimal
    currency: str
    cost_date: datetime
    cost_type: str
    description: Optional[str] = None

class ApplicationFinancials(SQLModel):
    application_id: uuid.UUID
    final_fee_amount: Optional[Decimal] = None
    total_paid: Decimal
    outstanding_balance: Decimal
    payments: List[PaymentRead] = []
    # Only populated for roles allowed to see costs
    total_costs: Optional[Decimal] = None
    profit: Optional[Decimal] = None
    costs: Optional[List[CostRead]] = None
