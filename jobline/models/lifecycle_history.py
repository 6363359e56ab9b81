from typing import Optional
from enum import Enum
from datetime import datetime
import uuid
from sqlmodel import Field, SQLModel, Column, String

class LifecycleAction(str, Enum):
    CREATED = "created"
    STATUS_CHANGE = "status_change"
    STATUS_OVERRIDE = "status_override"
    CANCELLATION = "cancellation"

class ApplicationLifecycleHistory(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    application_id: uuid.UUID = Field(foreign_key="application.id", index=True)
    company_id: uuid.UUID = Field(foreign_key="company.id", index=True)
    action: LifecycleAction = Field(sa_column=Column(String(30), nullable=False))
    from_status: Optional[str] = None
    to_status: str
    notes: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    # Who performed the action
    performed_by: Optional[uuid.UUID] = Field(default=None, foreign_key="user.id")

class LifecycleHistoryRead(SQLModel):
    id: int
    action: LifecycleAction
    from_status: Optional[str] = None
    to_status: str
    notes: Optional[str] = None
    timestamp: datetime
    performed_by: Optional[uuid.UUID] = None
