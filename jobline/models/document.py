from typing import Optional
from enum import Enum
from datetime import datetime
import uuid
from sqlmodel import Field, SQLModel, Column, String, UniqueConstraint

from jobline.models.application import ApplicationStatus

class DocumentStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"
    SUBMITTED = "submitted"

class RequiredFrom(str, Enum):
    OFFICE = "office"
    CLIENT = "client"

# --- Document templates: tenant rules "at stage S, from X, document N" ---

class DocumentTemplateBase(SQLModel):
    stage: ApplicationStatus
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    required: bool = True
    required_from: RequiredFrom = RequiredFrom.OFFICE
    sort_order: int = Field(default=0, ge=0)

class DocumentTemplate(DocumentTemplateBase, table=True):
    __table_args__ = (
        UniqueConstraint("company_id", "stage", "name", name="uq_documenttemplate_company_stage_name"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    stage: ApplicationStatus = Field(sa_column=Column(String(40), nullable=False, index=True))
    required_from: RequiredFrom = Field(
        default=RequiredFrom.OFFICE, sa_column=Column(String(20), nullable=False)
    )
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class DocumentTemplateCreate(DocumentTemplateBase):
    pass

class DocumentTemplateRead(DocumentTemplateBase):
    id: uuid.UUID
    created_at: datetime

class DocumentTemplateUpdate(SQLModel):
    stage: Optional[ApplicationStatus] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    required: Optional[bool] = None
    required_from: Optional[RequiredFrom] = None
    sort_order: Optional[int] = Field(default=None, ge=0)

# --- Checklist items: one template rule materialized on one application ---

class DocumentChecklistItem(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("application_id", "stage", "document_name", name="uq_checklist_application_stage_name"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    application_id: uuid.UUID = Field(foreign_key="application.id", index=True)
    document_name: str = Field(max_length=255)
    status: DocumentStatus = Field(
        default=DocumentStatus.PENDING, sa_column=Column(String(20), nullable=False)
    )
    # Stage at which the document became required
    stage: ApplicationStatus = Field(sa_column=Column(String(40), nullable=False))
    required: bool = True
    required_from: RequiredFrom = Field(
        default=RequiredFrom.OFFICE, sa_column=Column(String(20), nullable=False)
    )
    sort_order: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

class ChecklistItemCreate(SQLModel):
    document_name: str = Field(min_length=1, max_length=255)
    stage: Optional[ApplicationStatus] = None # Defaults to the application's current stage
    required: bool = True
    required_from: RequiredFrom = RequiredFrom.OFFICE

class ChecklistItemRead(SQLModel):
    id: uuid.UUID
    application_id: uuid.UUID
    document_name: str
    status: DocumentStatus
    stage: ApplicationStatus
    required: bool
    required_from: RequiredFrom
    sort_order: int
    created_at: datetime

class ChecklistItemStatusUpdate(SQLModel):
    status: DocumentStatus
