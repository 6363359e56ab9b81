"""
The application state machine.

Every write here is one unit of work: the application row, the checklist
items of the stage it lands on, the candidate status and the history entry
are committed together or not at all.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import ValidationError as PydanticValidationError
from sqlmodel import SQLModel, col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.core.exceptions import ConflictError, ValidationError
from jobline.core.security import generate_shareable_link
from jobline.db.session import transaction
from jobline.models.application import (
    Application,
    ApplicationCreate,
    ApplicationStatus,
    ApplicationType,
    ApplicationUpdate,
    NextStatesRead,
)
from jobline.models.broker import Broker
from jobline.models.candidate import AVAILABLE_STATUSES, Candidate, CandidateStatus
from jobline.models.client import Client
from jobline.models.document import DocumentChecklistItem
from jobline.models.fee_template import FeeTemplate
from jobline.models.ledger import Cost, Payment
from jobline.models.lifecycle_history import ApplicationLifecycleHistory, LifecycleAction
from jobline.services.checklist import ChecklistGenerator
from jobline.services.fee_validator import FeeTemplateValidator
from jobline.services.history_service import record_lifecycle_event
from jobline.services.tenant import (
    Permission,
    TenantContext,
    ensure_same_tenant,
    get_scoped,
    scoped_select,
)
from jobline.services.workflow import (
    as_status,
    candidate_status_on_enter,
    cancellation_states,
    default_cancellation_for,
    forward_states,
    is_cancellation,
    is_forward_transition,
    is_terminal,
    requires_arrival_date,
    valid_next_states,
)

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=SQLModel)

# Optional relations an application may point at: (field, model, entity name)
OPTIONAL_RELATIONS = (
    ("from_client_id", Client, "Client"),
    ("broker_id", Broker, "Broker"),
    ("fee_template_id", FeeTemplate, "Fee template"),
)

LAWYER_FEE_FIELDS = ("lawyer_fee_cost", "lawyer_fee_charge")

def parse_input(model: Type[InputT], data: Union[InputT, Dict[str, Any]]) -> InputT:
    """Accept either a validated model or a raw mapping, reporting the first bad field."""
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise ValidationError(error["msg"], field=field)

class ApplicationLifecycle:
    def __init__(
        self,
        session: AsyncSession,
        checklist: Optional[ChecklistGenerator] = None,
        fees: Optional[FeeTemplateValidator] = None,
    ):
        self.session = session
        self.checklist = checklist or ChecklistGenerator(session)
        self.fees = fees or FeeTemplateValidator(session)

    async def create(
        self, data: Union[ApplicationCreate, Dict[str, Any]], tenant: TenantContext
    ) -> Application:
        """
        Open a new case and materialize the checklist of its first stage.

        Relations are resolved inside the tenant; one owned by another
        agency fails exactly like a missing one.
        """
        tenant.require(Permission.MANAGE_APPLICATIONS)
        data = parse_input(ApplicationCreate, data)
        status = as_status(data.status)
        if is_terminal(status):
            raise ValidationError("An application cannot start in a terminal state", field="status")
        if requires_arrival_date(status) and data.exact_arrival_date is None:
            raise ValidationError("Arrival date is required for this stage", field="exact_arrival_date")
        self._check_lawyer_fees(data.lawyer_service_requested, data.model_dump(include=set(LAWYER_FEE_FIELDS)))

        async with transaction(self.session):
            candidate = await ensure_same_tenant(
                self.session, Candidate, data.candidate_id, tenant, "Candidate", "candidate_id"
            )
            await ensure_same_tenant(self.session, Client, data.client_id, tenant, "Client", "client_id")
            related = {}
            for field, model, entity in OPTIONAL_RELATIONS:
                value = getattr(data, field)
                if value is not None:
                    related[field] = await ensure_same_tenant(self.session, model, value, tenant, entity, field)

            self._check_candidate_available(candidate, data.type)
            self._check_guarantors(data.type, data.client_id, data.from_client_id)

            template = related.get("fee_template_id")
            if template is not None and data.final_fee_amount is not None:
                FeeTemplateValidator.check(template, data.final_fee_amount).raise_for_range()

            application = Application.model_validate(
                data,
                update={
                    "status": status,
                    "company_id": tenant.company_id,
                    "shareable_link": generate_shareable_link(),
                },
            )
            self.session.add(application)
            await self.session.flush()

            await self.checklist.generate_for(application, status, tenant)
            self._set_candidate_status(candidate, candidate_status_on_enter(status) or CandidateStatus.IN_PROCESS)
            record_lifecycle_event(self.session, application, LifecycleAction.CREATED, tenant)

        await self.session.refresh(application)
        logger.info(
            "Application %s created at %s for company %s by user %s",
            application.id, status.value, tenant.company_id, tenant.user_id,
        )
        return application

    async def transition(
        self,
        application_id: uuid.UUID,
        new_status: Union[ApplicationStatus, str],
        tenant: TenantContext,
        *,
        override: bool = False,
        notes: Optional[str] = None,
        exact_arrival_date: Optional[datetime] = None,
    ) -> Application:
        """
        Move an application to ``new_status``.

        Forward moves and cancellations out of an open stage go through
        directly. Anything else (skipping stages, going back, leaving a
        terminal state) needs ``override=True`` and is recorded as an
        override. Repeating the current status is a retry: it tops up the
        checklist and stores ``exact_arrival_date`` if one is given.
        """
        tenant.require(Permission.MANAGE_APPLICATIONS)
        try:
            target = as_status(new_status)
        except ValueError:
            raise ValidationError(f"Unknown status '{new_status}'", field="status")

        async with transaction(self.session):
            # Row lock: concurrent transitions of one application serialize here
            application = await get_scoped(
                self.session, Application, application_id, tenant, "Application", for_update=True
            )
            current = as_status(application.status)

            if target == current:
                if exact_arrival_date is not None:
                    application.exact_arrival_date = exact_arrival_date
                    application.updated_at = datetime.utcnow()
                    self.session.add(application)
                await self.checklist.generate_for(application, current, tenant)
                action = None
            else:
                forward = is_forward_transition(current, target)
                if not forward and not override:
                    allowed = ", ".join(s.value for s in valid_next_states(current)) or "none"
                    raise ValidationError(
                        f"Cannot move from {current.value} to {target.value}; valid next states: {allowed}",
                        field="status",
                    )

                if exact_arrival_date is not None:
                    application.exact_arrival_date = exact_arrival_date
                if requires_arrival_date(target) and application.exact_arrival_date is None:
                    raise ValidationError("Arrival date is required for this stage", field="exact_arrival_date")

                application.status = target
                application.updated_at = datetime.utcnow()
                self.session.add(application)
                await self.session.flush()

                candidate_status = candidate_status_on_enter(target)
                if candidate_status is not None:
                    candidate = await get_scoped(self.session, Candidate, application.candidate_id, tenant, "Candidate")
                    self._set_candidate_status(candidate, candidate_status)

                # Post-write status drives the checklist
                await self.checklist.generate_for(application, as_status(application.status), tenant)

                if not forward:
                    action = LifecycleAction.STATUS_OVERRIDE
                    logger.warning(
                        "Status override on application %s: %s -> %s by user %s",
                        application.id, current.value, target.value, tenant.user_id,
                    )
                elif is_cancellation(target):
                    action = LifecycleAction.CANCELLATION
                else:
                    action = LifecycleAction.STATUS_CHANGE
                record_lifecycle_event(self.session, application, action, tenant, from_status=current, notes=notes)

        await self.session.refresh(application)
        if action is not None:
            logger.info("Application %s moved %s -> %s", application.id, current.value, target.value)
        return application

    async def next_states(self, application_id: uuid.UUID, tenant: TenantContext) -> NextStatesRead:
        application = await self.get(application_id, tenant)
        current = as_status(application.status)
        return NextStatesRead(
            current=current,
            forward=forward_states(current),
            cancellations=cancellation_states(current),
            suggested_cancellation=default_cancellation_for(current),
        )

    async def update(
        self,
        application_id: uuid.UUID,
        data: Union[ApplicationUpdate, Dict[str, Any]],
        tenant: TenantContext,
    ) -> Application:
        """Edit non-status fields. A rejected edit leaves the row untouched."""
        tenant.require(Permission.MANAGE_APPLICATIONS)
        data = parse_input(ApplicationUpdate, data)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("lawyer_service_requested", False) is None:
            del changes["lawyer_service_requested"]
        if "client_id" in changes and changes["client_id"] is None:
            raise ValidationError("Client is required", field="client_id")

        async with transaction(self.session):
            application = await get_scoped(
                self.session, Application, application_id, tenant, "Application", for_update=True
            )

            if changes.get("client_id") is not None:
                await ensure_same_tenant(self.session, Client, changes["client_id"], tenant, "Client", "client_id")
            for field, model, entity in OPTIONAL_RELATIONS:
                if changes.get(field) is not None:
                    await ensure_same_tenant(self.session, model, changes[field], tenant, entity, field)
            self._check_guarantors(
                application.type,
                changes.get("client_id", application.client_id),
                changes.get("from_client_id", application.from_client_id),
            )

            lawyer_requested = changes.get("lawyer_service_requested", application.lawyer_service_requested)
            self._check_lawyer_fees(lawyer_requested, {k: changes.get(k) for k in LAWYER_FEE_FIELDS})
            if not lawyer_requested:
                for field in LAWYER_FEE_FIELDS:
                    changes[field] = None

            if "fee_template_id" in changes or "final_fee_amount" in changes:
                check = await self.fees.validate(
                    changes.get("fee_template_id", application.fee_template_id),
                    changes.get("final_fee_amount", application.final_fee_amount),
                    tenant,
                )
                check.raise_for_range()

            for key, value in changes.items():
                setattr(application, key, value)
            application.updated_at = datetime.utcnow()
            self.session.add(application)

        await self.session.refresh(application)
        return application

    async def get(self, application_id: uuid.UUID, tenant: TenantContext) -> Application:
        return await get_scoped(self.session, Application, application_id, tenant, "Application")

    async def list_applications(
        self,
        tenant: TenantContext,
        *,
        status: Optional[ApplicationStatus] = None,
        type: Optional[ApplicationType] = None,
        client_id: Optional[uuid.UUID] = None,
        candidate_id: Optional[uuid.UUID] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Application]:
        statement = scoped_select(Application, tenant)
        if status is not None:
            statement = statement.where(Application.status == as_status(status).value)
        if type is not None:
            statement = statement.where(Application.type == ApplicationType(type).value)
        if client_id is not None:
            statement = statement.where(Application.client_id == client_id)
        if candidate_id is not None:
            statement = statement.where(Application.candidate_id == candidate_id)
        statement = statement.order_by(col(Application.created_at).desc()).offset(skip).limit(limit)
        result = await self.session.exec(statement)
        return list(result.all())

    async def delete(self, application_id: uuid.UUID, tenant: TenantContext) -> None:
        """Hard delete together with checklist items and history; refused while ledger rows exist."""
        tenant.require(Permission.MANAGE_APPLICATIONS)
        async with transaction(self.session):
            application = await get_scoped(
                self.session, Application, application_id, tenant, "Application", for_update=True
            )
            for ledger_model in (Payment, Cost):
                linked = await self.session.exec(
                    select(ledger_model.id).where(ledger_model.application_id == application.id)
                )
                if linked.first() is not None:
                    raise ConflictError("Application has payments or costs recorded and cannot be deleted")

            for child_model in (DocumentChecklistItem, ApplicationLifecycleHistory):
                children = await self.session.exec(
                    select(child_model).where(child_model.application_id == application.id)
                )
                for child in children.all():
                    await self.session.delete(child)
            # Children go first so the parent delete never sees dangling references
            await self.session.flush()
            await self.session.delete(application)

        logger.info("Application %s deleted by user %s", application_id, tenant.user_id)

    @staticmethod
    def _check_candidate_available(candidate: Candidate, application_type: ApplicationType) -> None:
        allowed = AVAILABLE_STATUSES
        if application_type == ApplicationType.GUARANTOR_CHANGE:
            allowed = AVAILABLE_STATUSES + (CandidateStatus.PLACED,)
        if CandidateStatus(candidate.status) not in allowed:
            raise ValidationError("Candidate is not available for a new application", field="candidate_id")

    @staticmethod
    def _check_guarantors(
        application_type: ApplicationType, client_id: uuid.UUID, from_client_id: Optional[uuid.UUID]
    ) -> None:
        if ApplicationType(application_type) != ApplicationType.GUARANTOR_CHANGE:
            return
        if from_client_id is None:
            raise ValidationError("Previous guarantor is required for a guarantor change", field="from_client_id")
        if from_client_id == client_id:
            raise ValidationError("New guarantor must differ from the previous one", field="client_id")

    @staticmethod
    def _check_lawyer_fees(lawyer_requested: bool, fees: Dict[str, Any]) -> None:
        if lawyer_requested:
            return
        for field in LAWYER_FEE_FIELDS:
            if fees.get(field) is not None:
                raise ValidationError("Lawyer fees require the lawyer service to be requested", field=field)

    def _set_candidate_status(self, candidate: Candidate, status: CandidateStatus) -> None:
        candidate.status = status
        candidate.updated_at = datetime.utcnow()
        self.session.add(candidate)
