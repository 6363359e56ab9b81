from typing import List, Optional
from datetime import datetime
from sqlmodel import SQLModel

from jobline.models.application import ApplicationStatus, ApplicationType

class PublicChecklistItem(SQLModel):
    document_name: str
    required: bool
    received: bool

class PublicApplicationStatus(SQLModel):
    """
    What the client-facing status page may see.

    Deliberately a closed list of fields: no ids, no tenant, no money, no
    office-side paperwork.
    """
    candidate_first_name: str
    candidate_last_name: str
    client_name: str
    status: ApplicationStatus
    type: ApplicationType
    created_at: datetime
    exact_arrival_date: Optional[datetime] = None
    documents: List[PublicChecklistItem] = []
