from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.api import deps
from jobline.models.application import ApplicationStatus
from jobline.models.document import (
    DocumentTemplateCreate,
    DocumentTemplateRead,
    DocumentTemplateUpdate,
    RequiredFrom,
)
from jobline.services.document_catalog import DocumentRequirementCatalog
from jobline.services.tenant import TenantContext

router = APIRouter()

@router.get("/", response_model=List[DocumentTemplateRead])
async def read_document_templates(
    stage: Optional[ApplicationStatus] = None,
    required_from: Optional[RequiredFrom] = None,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    """
    Document rules of the agency, in pipeline order. Filter by stage to get
    exactly what a checklist for that stage would contain.
    """
    catalog = DocumentRequirementCatalog(session)
    if stage is not None:
        return await catalog.requirements_for(stage, tenant, required_from=required_from)
    templates = await catalog.list_templates(tenant)
    if required_from is not None:
        templates = [t for t in templates if RequiredFrom(t.required_from) == required_from]
    return templates

@router.post("/", response_model=DocumentTemplateRead)
async def create_document_template(
    *,
    template_in: DocumentTemplateCreate,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_super_admin_tenant),
):
    return await DocumentRequirementCatalog(session).create(template_in, tenant)

@router.get("/{id}", response_model=DocumentTemplateRead)
async def read_document_template(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    return await DocumentRequirementCatalog(session).get(id, tenant)

@router.patch("/{id}", response_model=DocumentTemplateRead)
async def update_document_template(
    *,
    id: uuid.UUID,
    template_in: DocumentTemplateUpdate,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_super_admin_tenant),
):
    return await DocumentRequirementCatalog(session).update(id, template_in, tenant)

@router.delete("/{id}")
async def delete_document_template(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_super_admin_tenant),
):
    await DocumentRequirementCatalog(session).delete(id, tenant)
    return {"msg": "Document template deleted"}
