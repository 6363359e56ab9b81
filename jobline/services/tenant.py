"""
Tenant resolution and the single tenant predicate every query goes through.

Business logic never looks the tenant up on its own: request handlers
resolve a TenantContext once and pass it down explicitly.
"""
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Type, TypeVar

from sqlmodel import SQLModel, select
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.core.exceptions import CrossTenantError, ForbiddenError, NotFoundError, UnauthenticatedError
from jobline.models.user import User, UserRole

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)

class Permission(str, Enum):
    MANAGE_APPLICATIONS = "manage_applications"
    MANAGE_SETTINGS = "manage_settings" # Document and fee templates
    VIEW_FINANCIALS = "view_financials"
    VIEW_COSTS = "view_costs"

ROLE_PERMISSIONS = {
    UserRole.SUPER_ADMIN: frozenset(Permission),
    UserRole.ADMIN: frozenset({Permission.MANAGE_APPLICATIONS, Permission.VIEW_FINANCIALS}),
}

@dataclass(frozen=True)
class TenantContext:
    company_id: uuid.UUID
    role: UserRole
    user_id: Optional[uuid.UUID] = None

    def can(self, permission: Permission) -> bool:
        return permission in ROLE_PERMISSIONS.get(UserRole(self.role), frozenset())

    def require(self, permission: Permission) -> None:
        if not self.can(permission):
            logger.info("User %s denied %s", self.user_id, permission.value)
            raise ForbiddenError(action=permission.value)

def resolve(caller: Optional[User]) -> TenantContext:
    """Turn an authenticated user into the tenant scope for this request."""
    if caller is None:
        raise UnauthenticatedError()
    if not caller.is_active:
        raise UnauthenticatedError("Inactive user")
    return TenantContext(company_id=caller.company_id, role=UserRole(caller.role), user_id=caller.id)

def tenant_filter(model: Type[ModelT], tenant: TenantContext):
    return model.company_id == tenant.company_id

def scoped_select(model: Type[ModelT], tenant: TenantContext):
    """SELECT over ``model`` already restricted to the caller's tenant."""
    return select(model).where(tenant_filter(model, tenant))

async def get_scoped(
    session: AsyncSession,
    model: Type[ModelT],
    id: uuid.UUID,
    tenant: TenantContext,
    entity: str,
    *,
    for_update: bool = False,
) -> ModelT:
    """Load one row by id inside the tenant, or raise NotFoundError."""
    statement = scoped_select(model, tenant).where(model.id == id)
    if for_update:
        statement = statement.with_for_update()
    result = await session.exec(statement)
    obj = result.first()
    if obj is None:
        raise NotFoundError(entity)
    return obj

async def ensure_same_tenant(
    session: AsyncSession,
    model: Type[ModelT],
    id: uuid.UUID,
    tenant: TenantContext,
    entity: str,
    field: str,
) -> ModelT:
    """
    Resolve a relation id supplied by the caller.

    Unknown ids raise NotFoundError; ids owned by another tenant raise
    CrossTenantError, which renders identically to the caller.
    """
    obj = await session.get(model, id)
    if obj is None:
        raise NotFoundError(entity, field=field)
    if obj.company_id != tenant.company_id:
        logger.warning(
            "Cross-tenant reference rejected: company %s referenced %s %s via %s",
            tenant.company_id, entity, id, field,
        )
        raise CrossTenantError(entity, entity_id=id, field=field)
    return obj
