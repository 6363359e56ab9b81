"""
Materializes document rules onto applications.

Generation is additive and idempotent: it only inserts the (stage, name)
pairs an application does not have yet, so running it twice for the same
stage, or re-entering a stage, never duplicates or resets an item.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.core.exceptions import ConflictError, NotFoundError, ValidationError
from jobline.db.session import transaction
from jobline.models.application import Application, ApplicationStatus
from jobline.models.document import (
    ChecklistItemCreate,
    DocumentChecklistItem,
    DocumentStatus,
)
from jobline.services.document_catalog import DocumentRequirementCatalog
from jobline.services.tenant import TenantContext, get_scoped, tenant_filter
from jobline.services.workflow import STAGE_POSITION, as_status

logger = logging.getLogger(__name__)

class ChecklistGenerator:
    def __init__(self, session: AsyncSession, catalog: Optional[DocumentRequirementCatalog] = None):
        self.session = session
        self.catalog = catalog or DocumentRequirementCatalog(session)

    async def generate(
        self, application_id: uuid.UUID, stage: ApplicationStatus, tenant: TenantContext
    ) -> List[DocumentChecklistItem]:
        """Generate missing items for ``stage`` as a unit of work of its own."""
        async with transaction(self.session):
            application = await get_scoped(self.session, Application, application_id, tenant, "Application")
            created = await self.generate_for(application, stage, tenant)
        for item in created:
            await self.session.refresh(item)
        return created

    async def generate_for(
        self, application: Application, stage: ApplicationStatus, tenant: TenantContext
    ) -> List[DocumentChecklistItem]:
        """
        Insert the items ``stage`` requires inside the caller's transaction.

        Only flushes; committing is the caller's job so the items land
        together with whatever status write triggered them.
        """
        if application.company_id != tenant.company_id:
            raise NotFoundError("Application")
        stage = as_status(stage)

        templates = await self.catalog.requirements_for(stage, tenant)
        if not templates:
            return []

        result = await self.session.exec(
            select(DocumentChecklistItem.document_name).where(
                DocumentChecklistItem.application_id == application.id,
                DocumentChecklistItem.stage == stage.value,
            )
        )
        present = set(result.all())

        created = []
        for template in templates:
            if template.name in present:
                continue
            item = DocumentChecklistItem(
                application_id=application.id,
                document_name=template.name,
                status=DocumentStatus.PENDING,
                stage=stage,
                required=template.required,
                required_from=template.required_from,
                sort_order=template.sort_order,
            )
            self.session.add(item)
            created.append(item)
            present.add(template.name)

        if created:
            try:
                await self.session.flush()
            except IntegrityError:
                # Unique (application, stage, name) tripped: another request generated in between
                raise ConflictError("Checklist was generated concurrently; retry the request")
            logger.info("Generated %d checklist item(s) for application %s at %s", len(created), application.id, stage.value)
        return created

class ChecklistItems:
    """Reads and edits of checklist items, always through the owning application's tenant."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_items(
        self, application_id: uuid.UUID, tenant: TenantContext, stage: Optional[ApplicationStatus] = None
    ) -> List[DocumentChecklistItem]:
        await get_scoped(self.session, Application, application_id, tenant, "Application")
        statement = select(DocumentChecklistItem).where(DocumentChecklistItem.application_id == application_id)
        if stage is not None:
            statement = statement.where(DocumentChecklistItem.stage == as_status(stage).value)
        result = await self.session.exec(statement)
        return sorted(
            result.all(),
            key=lambda i: (STAGE_POSITION[as_status(i.stage)], i.sort_order, i.created_at, i.document_name),
        )

    async def get_item(self, item_id: uuid.UUID, tenant: TenantContext) -> DocumentChecklistItem:
        result = await self.session.exec(
            select(DocumentChecklistItem)
            .join(Application, Application.id == DocumentChecklistItem.application_id)
            .where(DocumentChecklistItem.id == item_id, tenant_filter(Application, tenant))
        )
        item = result.first()
        if item is None:
            raise NotFoundError("Document item")
        return item

    async def update_item_status(
        self, item_id: uuid.UUID, status: DocumentStatus, tenant: TenantContext
    ) -> DocumentChecklistItem:
        item = await self.get_item(item_id, tenant)
        item.status = DocumentStatus(status)
        item.updated_at = datetime.utcnow()
        self.session.add(item)
        await self.session.commit()
        await self.session.refresh(item)
        return item

    async def add_item(
        self, application_id: uuid.UUID, data: ChecklistItemCreate, tenant: TenantContext
    ) -> DocumentChecklistItem:
        """Ad-hoc document outside the agency's templates."""
        application = await get_scoped(self.session, Application, application_id, tenant, "Application")
        stage = as_status(data.stage or application.status)
        name = data.document_name.strip()

        existing = await self.session.exec(
            select(DocumentChecklistItem.id).where(
                DocumentChecklistItem.application_id == application.id,
                DocumentChecklistItem.stage == stage.value,
                DocumentChecklistItem.document_name == name,
            )
        )
        if existing.first() is not None:
            raise ValidationError("This document is already on the checklist for that stage", field="document_name")

        item = DocumentChecklistItem(
            application_id=application.id,
            document_name=name,
            status=DocumentStatus.PENDING,
            stage=stage,
            required=data.required,
            required_from=data.required_from,
        )
        self.session.add(item)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Checklist was modified concurrently")
        await self.session.refresh(item)
        return item

    async def remove_item(self, item_id: uuid.UUID, tenant: TenantContext) -> None:
        item = await self.get_item(item_id, tenant)
        await self.session.delete(item)
        await self.session.commit()
