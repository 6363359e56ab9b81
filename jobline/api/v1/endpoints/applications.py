from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.api import deps
from jobline.core.config import settings
from jobline.models.application import (
    ApplicationCreate,
    ApplicationRead,
    ApplicationStatus,
    ApplicationTransition,
    ApplicationType,
    ApplicationUpdate,
    NextStatesRead,
)
from jobline.models.document import ChecklistItemCreate, ChecklistItemRead, ChecklistItemStatusUpdate
from jobline.models.ledger import ApplicationFinancials
from jobline.models.lifecycle_history import LifecycleHistoryRead
from jobline.services.checklist import ChecklistGenerator, ChecklistItems
from jobline.services.history_service import list_history
from jobline.services.ledger import application_financials
from jobline.services.lifecycle import ApplicationLifecycle
from jobline.services.tenant import TenantContext

router = APIRouter()

class ShareLinkResponse(BaseModel):
    shareable_link: str
    url: str

def no_store(response: Response) -> None:
    # The returned application is the new source of truth; nothing may serve a stale copy
    response.headers["Cache-Control"] = "no-store"

@router.get("/", response_model=List[ApplicationRead])
async def read_applications(
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
    status: Optional[ApplicationStatus] = None,
    type: Optional[ApplicationType] = None,
    client_id: Optional[uuid.UUID] = None,
    candidate_id: Optional[uuid.UUID] = None,
    skip: int = 0,
    limit: int = 100,
):
    """
    Retrieve the agency's applications, newest first.
    """
    return await ApplicationLifecycle(session).list_applications(
        tenant,
        status=status,
        type=type,
        client_id=client_id,
        candidate_id=candidate_id,
        skip=skip,
        limit=limit,
    )

@router.post("/", response_model=ApplicationRead)
async def create_application(
    *,
    session: AsyncSession = Depends(deps.get_session),
    application_in: ApplicationCreate,
    response: Response,
    tenant: TenantContext = Depends(deps.get_tenant),
):
    """
    Create a new application together with the checklist of its first stage.
    """
    application = await ApplicationLifecycle(session).create(application_in, tenant)
    no_store(response)
    return application

@router.get("/{id}", response_model=ApplicationRead)
async def read_application(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    return await ApplicationLifecycle(session).get(id, tenant)

@router.patch("/{id}", response_model=ApplicationRead)
async def update_application(
    *,
    id: uuid.UUID,
    application_in: ApplicationUpdate,
    response: Response,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    """
    Edit relations, dates and fees. Status changes go through /transition.
    """
    application = await ApplicationLifecycle(session).update(id, application_in, tenant)
    no_store(response)
    return application

@router.delete("/{id}")
async def delete_application(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    await ApplicationLifecycle(session).delete(id, tenant)
    return {"msg": "Application deleted"}

@router.post("/{id}/transition", response_model=ApplicationRead)
async def transition_application(
    *,
    id: uuid.UUID,
    transition_in: ApplicationTransition,
    response: Response,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    """
    Move the application to another stage.

    Skipping stages, going back or leaving a terminal state is rejected
    unless ``override`` is set.
    """
    application = await ApplicationLifecycle(session).transition(
        id,
        transition_in.status,
        tenant,
        override=transition_in.override,
        notes=transition_in.notes,
        exact_arrival_date=transition_in.exact_arrival_date,
    )
    no_store(response)
    return application

@router.get("/{id}/next-states", response_model=NextStatesRead)
async def read_next_states(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    return await ApplicationLifecycle(session).next_states(id, tenant)

@router.get("/{id}/share-link", response_model=ShareLinkResponse)
async def read_share_link(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    application = await ApplicationLifecycle(session).get(id, tenant)
    return {
        "shareable_link": application.shareable_link,
        "url": f"{settings.FRONTEND_URL.rstrip('/')}/share/{application.shareable_link}",
    }

@router.get("/{id}/history", response_model=List[LifecycleHistoryRead])
async def read_history(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    return await list_history(session, id, tenant)

@router.get("/{id}/financials", response_model=ApplicationFinancials, response_model_exclude_none=True)
async def read_financials(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    return await application_financials(session, id, tenant)

# --- Checklist ---

@router.get("/{id}/documents", response_model=List[ChecklistItemRead])
async def read_checklist(
    id: uuid.UUID,
    stage: Optional[ApplicationStatus] = None,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    return await ChecklistItems(session).list_items(id, tenant, stage=stage)

@router.post("/{id}/documents", response_model=ChecklistItemRead)
async def add_checklist_item(
    *,
    id: uuid.UUID,
    item_in: ChecklistItemCreate,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    """
    Add a one-off document that no template covers.
    """
    return await ChecklistItems(session).add_item(id, item_in, tenant)

@router.post("/{id}/documents/generate", response_model=List[ChecklistItemRead])
async def generate_checklist(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    """
    Pick up templates added since the current stage was entered. Returns
    only the items created by this call.
    """
    application = await ApplicationLifecycle(session).get(id, tenant)
    return await ChecklistGenerator(session).generate(application.id, application.status, tenant)

@router.patch("/documents/{item_id}", response_model=ChecklistItemRead)
async def update_checklist_item(
    *,
    item_id: uuid.UUID,
    item_in: ChecklistItemStatusUpdate,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    return await ChecklistItems(session).update_item_status(item_id, item_in.status, tenant)

@router.delete("/documents/{item_id}")
async def delete_checklist_item(
    item_id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    await ChecklistItems(session).remove_item(item_id, tenant)
    return {"msg": "Document removed"}
