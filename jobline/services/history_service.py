import uuid
from typing import List, Optional

from sqlmodel import col
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.models.application import Application, ApplicationStatus
from jobline.models.lifecycle_history import ApplicationLifecycleHistory, LifecycleAction
from jobline.services.tenant import TenantContext, get_scoped, scoped_select
from jobline.services.workflow import as_status

def record_lifecycle_event(
    session: AsyncSession,
    application: Application,
    action: LifecycleAction,
    tenant: TenantContext,
    from_status: Optional[ApplicationStatus] = None,
    notes: Optional[str] = None,
) -> ApplicationLifecycleHistory:
    # Joins the caller's transaction; the caller commits
    entry = ApplicationLifecycleHistory(
        application_id=application.id,
        company_id=tenant.company_id,
        action=action,
        from_status=as_status(from_status).value if from_status is not None else None,
        to_status=as_status(application.status).value,
        notes=notes,
        performed_by=tenant.user_id,
    )
    session.add(entry)
    return entry

async def list_history(
    session: AsyncSession, application_id: uuid.UUID, tenant: TenantContext
) -> List[ApplicationLifecycleHistory]:
    await get_scoped(session, Application, application_id, tenant, "Application")
    result = await session.exec(
        scoped_select(ApplicationLifecycleHistory, tenant)
        .where(ApplicationLifecycleHistory.application_id == application_id)
        .order_by(col(ApplicationLifecycleHistory.timestamp), col(ApplicationLifecycleHistory.id))
    )
    return list(result.all())
