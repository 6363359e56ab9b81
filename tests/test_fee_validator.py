from decimal import Decimal
import uuid

import pytest
from sqlmodel import select

from jobline.core.exceptions import ConflictError, FeeRangeError, ForbiddenError, NotFoundError, ValidationError
from jobline.models.fee_template import FeeTemplate, FeeTemplateCreate, FeeTemplateUpdate
from jobline.services.fee_validator import FeeTemplateValidator


@pytest.mark.asyncio
@pytest.mark.parametrize("amount,ok", [
    ("1199.99", False),
    ("1200.00", True),
    ("1500.00", True),
    ("2000.00", True),
    ("2000.01", False),
])
async def test_range_is_inclusive(session, agency, amount, ok):
    check = await FeeTemplateValidator(session).validate(agency.fee_template_id, Decimal(amount), agency.staff_ctx)
    assert check.ok is ok
    assert check.min_price == Decimal("1200.00")
    assert check.max_price == Decimal("2000.00")


@pytest.mark.asyncio
async def test_out_of_range_raises_with_bounds(session, agency):
    check = await FeeTemplateValidator(session).validate(agency.fee_template_id, Decimal("2500"), agency.staff_ctx)
    with pytest.raises(FeeRangeError) as exc_info:
        check.raise_for_range()
    assert exc_info.value.field == "final_fee_amount"
    assert exc_info.value.min_price == Decimal("1200.00")
    assert exc_info.value.max_price == Decimal("2000.00")


@pytest.mark.asyncio
async def test_no_template_means_free_pricing(session, agency):
    check = await FeeTemplateValidator(session).validate(None, Decimal("99999"), agency.staff_ctx)
    assert check.ok
    check.raise_for_range()


@pytest.mark.asyncio
async def test_template_of_another_agency_is_not_found(session, agency, rival):
    with pytest.raises(NotFoundError):
        await FeeTemplateValidator(session).validate(rival.fee_template_id, Decimal("1500"), agency.staff_ctx)


@pytest.mark.asyncio
@pytest.mark.parametrize("min_price,default_price,max_price,field", [
    ("900", "800", "700", "min_price"),
    ("500", "400", "700", "default_price"),
    ("500", "800", "700", "default_price"),
])
async def test_create_rejects_broken_price_invariant(session, agency, min_price, default_price, max_price, field):
    data = FeeTemplateCreate(
        name="Broken",
        min_price=Decimal(min_price),
        default_price=Decimal(default_price),
        max_price=Decimal(max_price),
    )
    with pytest.raises(ValidationError) as exc_info:
        await FeeTemplateValidator(session).create(data, agency.owner_ctx)
    assert exc_info.value.field == field

    result = await session.exec(select(FeeTemplate).where(FeeTemplate.name == "Broken"))
    assert result.first() is None


@pytest.mark.asyncio
async def test_create_requires_super_admin(session, agency):
    data = FeeTemplateCreate(name="Kenyan", min_price=Decimal("1000"), default_price=Decimal("1100"), max_price=Decimal("1300"))
    with pytest.raises(ForbiddenError):
        await FeeTemplateValidator(session).create(data, agency.staff_ctx)

    template = await FeeTemplateValidator(session).create(data, agency.owner_ctx)
    assert template.company_id == agency.company_id


@pytest.mark.asyncio
async def test_names_are_unique_per_agency_only(session, agency, rival):
    data = FeeTemplateCreate(
        name="Standard Ethiopian", min_price=Decimal("1"), default_price=Decimal("2"), max_price=Decimal("3")
    )
    with pytest.raises(ValidationError) as exc_info:
        await FeeTemplateValidator(session).create(data, agency.owner_ctx)
    assert exc_info.value.field == "name"

    # The rival agency keeps its own template of the same name
    theirs = await FeeTemplateValidator(session).get(rival.fee_template_id, rival.owner_ctx)
    assert theirs.name == "Standard Ethiopian"


@pytest.mark.asyncio
async def test_update_rechecks_invariant_against_stored_values(session, agency):
    validator = FeeTemplateValidator(session)
    with pytest.raises(ValidationError):
        await validator.update(agency.fee_template_id, FeeTemplateUpdate(max_price=Decimal("1400")), agency.owner_ctx)

    updated = await validator.update(
        agency.fee_template_id, FeeTemplateUpdate(max_price=Decimal("2500")), agency.owner_ctx
    )
    assert updated.max_price == Decimal("2500")


@pytest.mark.asyncio
async def test_available_for_matches_scope_or_unscoped(session, agency):
    validator = FeeTemplateValidator(session)
    await validator.create(
        FeeTemplateCreate(name="Any nationality", min_price=Decimal("1"), default_price=Decimal("2"), max_price=Decimal("3")),
        agency.owner_ctx,
    )

    ethiopian = await validator.available_for(agency.staff_ctx, nationality="Ethiopian")
    kenyan = await validator.available_for(agency.staff_ctx, nationality="Kenyan")

    assert [t.name for t in ethiopian] == ["Any nationality", "Standard Ethiopian"]
    assert [t.name for t in kenyan] == ["Any nationality"]


@pytest.mark.asyncio
async def test_delete_refused_while_in_use(session, agency, application):
    with pytest.raises(ConflictError):
        await FeeTemplateValidator(session).delete(agency.fee_template_id, agency.owner_ctx)


@pytest.mark.asyncio
async def test_delete_unused_template(session, agency):
    validator = FeeTemplateValidator(session)
    await validator.delete(agency.fee_template_id, agency.owner_ctx)
    with pytest.raises(NotFoundError):
        await validator.get(agency.fee_template_id, agency.owner_ctx)


@pytest.mark.asyncio
async def test_unknown_template_id(session, agency):
    with pytest.raises(NotFoundError):
        await FeeTemplateValidator(session).get(uuid.uuid4(), agency.owner_ctx)
