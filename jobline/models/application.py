from typing import List, Optional
from enum import Enum
from datetime import datetime
from decimal import Decimal
import uuid
from sqlmodel import Field, SQLModel, Column, String

class ApplicationStatus(str, Enum):
    # Values are persisted verbatim; never rename them.
    PENDING_MOL = "PENDING_MOL"
    MOL_AUTH_RECEIVED = "MOL_AUTH_RECEIVED"
    VISA_PROCESSING = "VISA_PROCESSING"
    VISA_RECEIVED = "VISA_RECEIVED"
    WORKER_ARRIVED = "WORKER_ARRIVED"
    LABOUR_PERMIT_PROCESSING = "LABOUR_PERMIT_PROCESSING"
    RESIDENCY_PERMIT_PROCESSING = "RESIDENCY_PERMIT_PROCESSING"
    ACTIVE_EMPLOYMENT = "ACTIVE_EMPLOYMENT"
    CONTRACT_ENDED = "CONTRACT_ENDED"
    RENEWAL_PENDING = "RENEWAL_PENDING"
    CANCELLED_PRE_ARRIVAL = "CANCELLED_PRE_ARRIVAL"
    CANCELLED_POST_ARRIVAL = "CANCELLED_POST_ARRIVAL"
    CANCELLED_CANDIDATE = "CANCELLED_CANDIDATE"

class ApplicationType(str, Enum):
    NEW_CANDIDATE = "NEW_CANDIDATE"
    GUARANTOR_CHANGE = "GUARANTOR_CHANGE"

class ApplicationFields(SQLModel):
    """Fields a caller may set on create and edit afterwards."""
    from_client_id: Optional[uuid.UUID] = None # Previous guarantor, for guarantor changes
    broker_id: Optional[uuid.UUID] = None
    fee_template_id: Optional[uuid.UUID] = None
    final_fee_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    lawyer_service_requested: bool = False
    lawyer_fee_cost: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    lawyer_fee_charge: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    exact_arrival_date: Optional[datetime] = None
    permit_expiry_date: Optional[datetime] = None
    labor_permit_date: Optional[datetime] = None
    residency_permit_date: Optional[datetime] = None

class Application(ApplicationFields, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    status: ApplicationStatus = Field(
        default=ApplicationStatus.PENDING_MOL,
        sa_column=Column(String(40), nullable=False, index=True),
    )
    type: ApplicationType = Field(
        default=ApplicationType.NEW_CANDIDATE,
        sa_column=Column(String(30), nullable=False),
    )
    shareable_link: str = Field(unique=True, index=True, max_length=255)

    candidate_id: uuid.UUID = Field(foreign_key="candidate.id", index=True)
    client_id: uuid.UUID = Field(foreign_key="client.id", index=True)
    from_client_id: Optional[uuid.UUID] = Field(default=None, foreign_key="client.id")
    broker_id: Optional[uuid.UUID] = Field(default=None, foreign_key="broker.id")
    fee_template_id: Optional[uuid.UUID] = Field(default=None, foreign_key="feetemplate.id")

    # Tenant boundary
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class ApplicationCreate(ApplicationFields):
    candidate_id: uuid.UUID
    client_id: uuid.UUID
    type: ApplicationType = ApplicationType.NEW_CANDIDATE
    status: ApplicationStatus = ApplicationStatus.PENDING_MOL

class ApplicationUpdate(SQLModel):
    client_id: Optional[uuid.UUID] = None
    from_client_id: Optional[uuid.UUID] = None
    broker_id: Optional[uuid.UUID] = None
    fee_template_id: Optional[uuid.UUID] = None
    final_fee_amount: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    lawyer_service_requested: Optional[bool] = None
    lawyer_fee_cost: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    lawyer_fee_charge: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    exact_arrival_date: Optional[datetime] = None
    permit_expiry_date: Optional[datetime] = None
    labor_permit_date: Optional[datetime] = None
    residency_permit_date: Optional[datetime] = None

class ApplicationRead(ApplicationFields):
    id: uuid.UUID
    status: ApplicationStatus
    type: ApplicationType
    shareable_link: str
    candidate_id: uuid.UUID
    client_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

class ApplicationTransition(SQLModel):
    status: ApplicationStatus
    # Explicitly allow skipping stages or leaving a terminal state
    override: bool = False
    notes: Optional[str] = None
    exact_arrival_date: Optional[datetime] = None

class NextStatesRead(SQLModel):
    current: ApplicationStatus
    forward: List[ApplicationStatus]
    cancellations: List[ApplicationStatus]
    suggested_cancellation: Optional[ApplicationStatus] = None
