from typing import List
import uuid
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.api import deps
from jobline.models.broker import Broker, BrokerRead
from jobline.services.tenant import TenantContext, get_scoped, scoped_select

router = APIRouter()

@router.get("/", response_model=List[BrokerRead])
async def read_brokers(
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    """
    Brokers of the agency. Contact details come back in a fixed shape
    whatever was stored.
    """
    result = await session.exec(scoped_select(Broker, tenant).order_by(Broker.name))
    return result.all()

@router.get("/{id}", response_model=BrokerRead)
async def read_broker(
    id: uuid.UUID,
    session: AsyncSession = Depends(deps.get_session),
    tenant: TenantContext = Depends(deps.get_tenant),
):
    return await get_scoped(session, Broker, id, tenant, "Broker")
