"""Per-agency rules describing which documents each stage requires."""
import logging
import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.core.exceptions import ConflictError, ValidationError
from jobline.models.application import ApplicationStatus
from jobline.models.document import (
    DocumentTemplate,
    DocumentTemplateCreate,
    DocumentTemplateUpdate,
    RequiredFrom,
)
from jobline.services.tenant import Permission, TenantContext, get_scoped, scoped_select
from jobline.services.workflow import STAGE_POSITION, as_status

logger = logging.getLogger(__name__)

class DocumentRequirementCatalog:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def requirements_for(
        self,
        stage: ApplicationStatus,
        tenant: TenantContext,
        required_from: Optional[RequiredFrom] = None,
    ) -> List[DocumentTemplate]:
        """
        Template rows for (tenant, stage), in checklist order.

        Ordered by ``sort_order`` then name so the same rule set always
        yields the same sequence.
        """
        statement = scoped_select(DocumentTemplate, tenant).where(DocumentTemplate.stage == as_status(stage).value)
        if required_from is not None:
            statement = statement.where(DocumentTemplate.required_from == RequiredFrom(required_from).value)
        statement = statement.order_by(DocumentTemplate.sort_order, DocumentTemplate.name)
        result = await self.session.exec(statement)
        return list(result.all())

    async def list_templates(self, tenant: TenantContext) -> List[DocumentTemplate]:
        result = await self.session.exec(scoped_select(DocumentTemplate, tenant))
        return sorted(
            result.all(),
            key=lambda t: (STAGE_POSITION[as_status(t.stage)], t.sort_order, t.name),
        )

    async def get(self, template_id: uuid.UUID, tenant: TenantContext) -> DocumentTemplate:
        return await get_scoped(self.session, DocumentTemplate, template_id, tenant, "Document template")

    async def create(self, data: DocumentTemplateCreate, tenant: TenantContext) -> DocumentTemplate:
        tenant.require(Permission.MANAGE_SETTINGS)
        name = data.name.strip()
        if not name:
            raise ValidationError("Name is required", field="name")
        await self._ensure_unique(data.stage, name, tenant)

        template = DocumentTemplate.model_validate(
            data, update={"name": name, "company_id": tenant.company_id}
        )
        self.session.add(template)
        await self._commit()
        await self.session.refresh(template)
        logger.info("Document template '%s' added to stage %s for company %s", name, template.stage, tenant.company_id)
        return template

    async def update(
        self, template_id: uuid.UUID, data: DocumentTemplateUpdate, tenant: TenantContext
    ) -> DocumentTemplate:
        """
        Edit a rule. Checklists already materialized on applications are
        left as they are; only future stage entries see the change.
        """
        tenant.require(Permission.MANAGE_SETTINGS)
        template = await self.get(template_id, tenant)
        changes = data.model_dump(exclude_unset=True)
        if "name" in changes:
            changes["name"] = changes["name"].strip()
            if not changes["name"]:
                raise ValidationError("Name is required", field="name")

        stage = changes.get("stage", template.stage)
        name = changes.get("name", template.name)
        if (as_status(stage), name) != (as_status(template.stage), template.name):
            await self._ensure_unique(stage, name, tenant, exclude_id=template.id)

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
        await self.session.delete(template)
        await self.session.commit()

    async def _ensure_unique(
        self, stage: ApplicationStatus, name: str, tenant: TenantContext, exclude_id: Optional[uuid.UUID] = None
    ) -> None:
        statement = scoped_select(DocumentTemplate, tenant).where(
            DocumentTemplate.stage == as_status(stage).value, DocumentTemplate.name == name
        )
        if exclude_id is not None:
            statement = statement.where(DocumentTemplate.id != exclude_id)
        existing = await self.session.exec(statement)
        if existing.first() is not None:
            raise ValidationError("A document template with this name already exists for this stage", field="name")

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ConflictError("Document template was modified concurrently")
