import uuid
from decimal import Decimal

from sqlmodel import col
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.models.application import Application
from jobline.models.ledger import ApplicationFinancials, Cost, CostRead, Payment, PaymentRead
from jobline.services.tenant import Permission, TenantContext, get_scoped, scoped_select

async def application_financials(
    session: AsyncSession, application_id: uuid.UUID, tenant: TenantContext
) -> ApplicationFinancials:
    """
    Money in and out for one application.

    Costs and profit are only filled in for roles that may see costs; for
    everyone else they stay None rather than zero.
    """
    tenant.require(Permission.VIEW_FINANCIALS)
    application = await get_scoped(session, Application, application_id, tenant, "Application")

    payments = (await session.exec(
        scoped_select(Payment, tenant)
        .where(Payment.application_id == application.id)
        .order_by(col(Payment.payment_date))
    )).all()
    total_paid = sum((Decimal(p.amount) for p in payments), Decimal("0"))
    fee = Decimal(application.final_fee_amount) if application.final_fee_amount is not None else Decimal("0")

    financials = ApplicationFinancials(
        application_id=application.id,
        final_fee_amount=application.final_fee_amount,
        total_paid=total_paid,
        outstanding_balance=fee - total_paid,
        payments=[PaymentRead.model_validate(p) for p in payments],
    )

    if tenant.can(Permission.VIEW_COSTS):
        costs = (await session.exec(
            scoped_select(Cost, tenant)
            .where(Cost.application_id == application.id)
            .order_by(col(Cost.cost_date))
        )).all()
        total_costs = sum((Decimal(c.amount) for c in costs), Decimal("0"))
        financials.total_costs = total_costs
        financials.profit = total_paid - total_costs
        financials.costs = [CostRead.model_validate(c) for c in costs]

    return financials
