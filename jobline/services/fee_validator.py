"""Fee templates: pricing rules per agency and the range check on final fees."""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import col, or_, select
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.core.exceptions import ConflictError, FeeRangeError, ValidationError
from jobline.models.application import Application
from jobline.models.fee_template import FeeTemplate, FeeTemplateCreate, FeeTemplateUpdate
from jobline.services.tenant import Permission, TenantContext, get_scoped, scoped_select, tenant_filter

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class FeeCheck:
    """Outcome of a range check. ``ok`` is False only for an out-of-range amount."""
    ok: bool
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    currency: Optional[str] = None

    def raise_for_range(self) -> None:
        if not self.ok:
            raise FeeRangeError(self.min_price, self.max_price, self.currency or "USD")

def check_price_invariant(min_price: Decimal, default_price: Decimal, max_price: Decimal) -> None:
    if min_price > max_price:
        raise ValidationError("Minimum price cannot be greater than maximum price", field="min_price")
    if default_price < min_price or default_price > max_price:
        raise ValidationError("Default price must be between minimum and maximum price", field="default_price")

class FeeTemplateValidator:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def validate(
        self, template_id: Optional[uuid.UUID], amount: Optional[Decimal], tenant: TenantContext
    ) -> FeeCheck:
        """
        Check ``amount`` against the template's inclusive [min, max] range.

        No template means ad-hoc pricing: any amount is accepted. A template
        outside the tenant raises NotFoundError.
        """
        if template_id is None or amount is None:
            return FeeCheck(ok=True)
        template = await get_scoped(self.session, FeeTemplate, template_id, tenant, "Fee template")
        return self.check(template, amount)

    @staticmethod
    def check(template: FeeTemplate, amount: Decimal) -> FeeCheck:
        amount = Decimal(amount)
        min_price, max_price = Decimal(template.min_price), Decimal(template.max_price)
        return FeeCheck(
            ok=min_price <= amount <= max_price,
            min_price=min_price,
            max_price=max_price,
            currency=template.currency,
        )

    async def list_templates(self, tenant: TenantContext) -> List[FeeTemplate]:
        result = await self.session.exec(scoped_select(FeeTemplate, tenant).order_by(FeeTemplate.name))
        return list(result.all())

    async def available_for(
        self, tenant: TenantContext, nationality: Optional[str] = None, service_type: Optional[str] = None
    ) -> List[FeeTemplate]:
        """Templates usable for a case: scope matches or is left open."""
        statement = scoped_select(FeeTemplate, tenant)
        if nationality:
            statement = statement.where(or_(col(FeeTemplate.nationality).is_(None), FeeTemplate.nationality == nationality))
        if service_type:
            statement = statement.where(or_(col(FeeTemplate.service_type).is_(None), FeeTemplate.service_type == service_type))
        result = await self.session.exec(statement.order_by(FeeTemplate.name))
        return list(result.all())

    async def get(self, template_id: uuid.UUID, tenant: TenantContext) -> FeeTemplate:
        return await get_scoped(self.session, FeeTemplate, template_id, tenant, "Fee template")

    async def create(self, data: FeeTemplateCreate, tenant: TenantContext) -> FeeTemplate:
        tenant.require(Permission.MANAGE_SETTINGS)
        check_price_invariant(data.min_price, data.default_price, data.max_price)
        await self._ensure_unique_name(data.name, tenant)

        template = FeeTemplate.model_validate(data, update={"company_id": tenant.company_id})
        self.session.add(template)
        await self._commit()
        await self.session.refresh(template)
        logger.info("Fee template %s created for company %s", template.id, tenant.company_id)
        return template

    async def update(self, template_id: uuid.UUID, data: FeeTemplateUpdate, tenant: TenantContext) -> FeeTemplate:
        tenant.require(Permission.MANAGE_SETTINGS)
        template = await self.get(template_id, tenant)
        changes = data.model_dump(exclude_unset=True)

        check_price_invariant(
            changes.get("min_price", template.min_price),
            changes.get("default_price", template.default_price),
            changes.get("max_price", template.max_price),
        )
        if changes.get("name") and changes["name"] != template.name:
            await self._ensure_unique_name(changes["name"], tenant)

        for key, value in changes.items():
            setattr(template, key, value)
        template.updated_at = datetime.utcnow()
        self.session.add(template)
        await self._commit()
        await self.session.refresh(template)
        return template

    async def delete(self, template_id: uuid.UUID, tenant: TenantContext) -> None:
        tenant.require(Permission.MANAGE_SETTINGS)
        template = await self.get(template_id, tenant)
        in_use = await self.session.exec(
            select(Application.id).where(
                tenant_filter(Application, tenant), Application.fee_template_id == template.id
            )
        )
        if in_use.first() is not None:
            raise ConflictError("Fee template is used by existing applications")
        await self.session.delete(template)
        await self.session.commit()

    async def _ensure_unique_name(self, name: str, tenant: TenantContext) -> None:
        existing = await self.session.exec(scoped_select(FeeTemplate, tenant).where(FeeTemplate.name == name))
        if existing.first() is not None:
            raise ValidationError("A fee template with this name already exists", field="name")

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Fee template was modified concurrently")
