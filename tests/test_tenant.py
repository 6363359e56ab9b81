import uuid

import pytest

from jobline.core.exceptions import CrossTenantError, ForbiddenError, NotFoundError, UnauthenticatedError
from jobline.models.client import Client
from jobline.models.user import User, UserRole
from jobline.services.tenant import Permission, TenantContext, ensure_same_tenant, get_scoped, resolve


def test_resolve_requires_a_caller():
    with pytest.raises(UnauthenticatedError):
        resolve(None)


def test_resolve_rejects_inactive_users():
    user = User(email="x@y.test", hashed_password="-", is_active=False, company_id=uuid.uuid4())
    with pytest.raises(UnauthenticatedError):
        resolve(user)


def test_resolve_carries_company_and_role():
    company_id = uuid.uuid4()
    user = User(email="x@y.test", hashed_password="-", role="SUPER_ADMIN", company_id=company_id)
    tenant = resolve(user)
    assert tenant.company_id == company_id
    assert tenant.role is UserRole.SUPER_ADMIN
    assert tenant.user_id == user.id


def test_admin_cannot_manage_settings_or_see_costs():
    tenant = TenantContext(company_id=uuid.uuid4(), role=UserRole.ADMIN)
    assert tenant.can(Permission.MANAGE_APPLICATIONS)
    assert not tenant.can(Permission.VIEW_COSTS)
    with pytest.raises(ForbiddenError) as exc_info:
        tenant.require(Permission.MANAGE_SETTINGS)
    assert exc_info.value.field == "manage_settings"


def test_super_admin_can_do_everything():
    tenant = TenantContext(company_id=uuid.uuid4(), role=UserRole.SUPER_ADMIN)
    assert all(tenant.can(permission) for permission in Permission)


@pytest.mark.asyncio
async def test_get_scoped_hides_other_tenants_rows(session, agency, rival):
    assert (await get_scoped(session, Client, agency.client_id, agency.staff_ctx, "Client")).id == agency.client_id
    with pytest.raises(NotFoundError):
        await get_scoped(session, Client, agency.client_id, rival.staff_ctx, "Client")


@pytest.mark.asyncio
async def test_foreign_reference_looks_like_a_missing_one(session, agency, rival):
    with pytest.raises(CrossTenantError) as foreign:
        await ensure_same_tenant(session, Client, rival.client_id, agency.staff_ctx, "Client", "client_id")
    with pytest.raises(NotFoundError) as missing:
        await ensure_same_tenant(session, Client, uuid.uuid4(), agency.staff_ctx, "Client", "client_id")

    assert type(missing.value) is NotFoundError
    assert foreign.value.to_dict() == missing.value.to_dict() == {"detail": "Client not found", "field": "client_id"}
    assert foreign.value.status_code == missing.value.status_code == 404
