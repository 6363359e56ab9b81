from typing import List, Optional
import uuid
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.api import deps
from jobline.models.fee_template import (
    FeeCheckRead,
    FeeCheckRequest,
    FeeTemplateCreate,
    FeeTemplateRead,
    FeeTemplateUpdate,
)
from jobline.services.fee_validator import FeeTemplateValidator
from jobline.services.tenant import TenantContext

router = APIRouter()

@router.get("/", response_model=List[FeeTemplateRead])
async def read_fee_templates(
    nationality: Optional[str] = None,
    service_type: Optional[str] = None,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    """
    Fee templates of the agency. With ``nationality`` or ``service_type``
    only the templates usable for such a case are returned.
    """
    validator = FeeTemplateValidator(session)
    if nationality or service_type:
        return await validator.available_for(tenant, nationality=nationality, service_type=service_type)
    return await validator.list_templates(tenant)

@router.post("/", response_model=FeeTemplateRead)
async def create_fee_template(
    *,
    template_in: FeeTemplateCreate,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_super_admin_tenant),
):
    return await FeeTemplateValidator(session).create(template_in, tenant)

@router.get("/{id}", response_model=FeeTemplateRead)
async def read_fee_template(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    return await FeeTemplateValidator(session).get(id, tenant)

@router.patch("/{id}", response_model=FeeTemplateRead)
async def update_fee_template(
    *,
    id: uuid.UUID,
    template_in: FeeTemplateUpdate,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_super_admin_tenant),
):
    return await FeeTemplateValidator(session).update(id, template_in, tenant)

@router.delete("/{id}")
async def delete_fee_template(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_super_admin_tenant),
):
    await FeeTemplateValidator(session).delete(id, tenant)
    return {"msg": "Fee template deleted"}

@router.post("/{id}/validate", response_model=FeeCheckRead)
async def validate_fee(
    *,
    id: uuid.UUID,
    check_in: FeeCheckRequest,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    """
    Dry-run a proposed final fee against the template's range.
    """
    check = await FeeTemplateValidator(session).validate(id, check_in.amount, tenant)
    return FeeCheckRead(ok=check.ok, min_price=check.min_price, max_price=check.max_price, currency=check.currency)
