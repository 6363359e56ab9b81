import uuid
from typing import Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.core import security
from jobline.core.config import settings
from jobline.db.session import get_session
from jobline.models.user import User
from jobline.services.tenant import Permission, TenantContext, resolve

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_STR}/login/access-token",
    auto_error=False,
)

async def get_current_user(
    session: AsyncSession = Depends(get_session),
    token: Optional[str] = Depends(reusable_oauth2),
) -> Optional[User]:
    """The authenticated user, or None; rejecting is left to tenant resolution."""
    if not token:
        return None
    subject = security.decode_access_token(token)
    if not subject:
        return None
    try:
        user_id = uuid.UUID(subject)
    except ValueError:
        return None
    return await session.get(User, user_id)

async def get_tenant(
    current_user: Optional[User] = Depends(get_current_user),
) -> TenantContext:
    return resolve(current_user)

async def get_super_admin_tenant(
    tenant: TenantContext = Depends(get_tenant),
) -> TenantContext:
    tenant.require(Permission.MANAGE_SETTINGS)
    return tenant

async def get_current_active_user(
    current_user: Optional[User] = Depends(get_current_user),
) -> User:
    resolve(current_user)
    return current_user
