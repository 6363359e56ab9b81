from decimal import Decimal

import pytest

from jobline.core.exceptions import NotFoundError
from jobline.models.ledger import Cost, Payment
from jobline.services.ledger import application_financials


@pytest.fixture
def add_ledger_rows(session, agency):
    async def add(application_id):
        session.add_all([
            Payment(application_id=application_id, client_id=agency.client_id, amount=Decimal("600.00"), company_id=agency.company_id),
            Payment(application_id=application_id, client_id=agency.client_id, amount=Decimal("400.00"), company_id=agency.company_id),
            Cost(application_id=application_id, amount=Decimal("350.00"), cost_type="AGENT_FEE", company_id=agency.company_id),
        ])
        await session.commit()
    return add


@pytest.mark.asyncio
async def test_owner_sees_costs_and_profit(session, agency, application, add_ledger_rows):
    await add_ledger_rows(application.id)
    financials = await application_financials(session, application.id, agency.owner_ctx)

    assert financials.total_paid == Decimal("1000.00")
    assert financials.outstanding_balance == Decimal("500.00")
    assert financials.total_costs == Decimal("350.00")
    assert financials.profit == Decimal("650.00")
    assert len(financials.costs) == 1


@pytest.mark.asyncio
async def test_staff_never_sees_costs(session, agency, application, add_ledger_rows):
    await add_ledger_rows(application.id)
    financials = await application_financials(session, application.id, agency.staff_ctx)

    assert financials.total_paid == Decimal("1000.00")
    assert len(financials.payments) == 2
    assert financials.total_costs is None
    assert financials.profit is None
    assert financials.costs is None


@pytest.mark.asyncio
async def test_financials_of_other_agencies(session, rival, application):
    with pytest.raises(NotFoundError):
        await application_financials(session, application.id, rival.owner_ctx)
