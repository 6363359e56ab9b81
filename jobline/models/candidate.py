from typing import Optional
from enum import Enum
from datetime import datetime
import uuid
from sqlmodel import Field, SQLModel, Column, String

class CandidateStatus(str, Enum):
    AVAILABLE_ABROAD = "AVAILABLE_ABROAD"
    AVAILABLE_IN_LEBANON = "AVAILABLE_IN_LEBANON"
    RESERVED = "RESERVED"
    IN_PROCESS = "IN_PROCESS"
    PLACED = "PLACED"

AVAILABLE_STATUSES = (CandidateStatus.AVAILABLE_ABROAD, CandidateStatus.AVAILABLE_IN_LEBANON)

class Candidate(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    first_name: str
    last_name: str
    nationality: Optional[str] = Field(default=None, index=True)
    status: CandidateStatus = Field(
        default=CandidateStatus.AVAILABLE_ABROAD,
        sa_column=Column(String(30), nullable=False, index=True),
    )
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
