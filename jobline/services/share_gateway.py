"""
Public, session-less view of one application.

Here possession of the token is the authorization, so this is the one
lookup that does not go through the tenant predicate. The projection is
assembled field by field; nothing is copied from the row wholesale.
"""
import logging
import re

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.core.exceptions import NotFoundError
from jobline.models.application import Application
from jobline.models.candidate import Candidate
from jobline.models.client import Client
from jobline.models.document import DocumentChecklistItem, DocumentStatus, RequiredFrom
from jobline.models.public_status import PublicApplicationStatus, PublicChecklistItem
from jobline.services.workflow import STAGE_POSITION, as_status

logger = logging.getLogger(__name__)

MIN_TOKEN_LENGTH = 16
MAX_TOKEN_LENGTH = 255
TOKEN_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

def is_well_formed(token: str) -> bool:
    return (
        MIN_TOKEN_LENGTH <= len(token) <= MAX_TOKEN_LENGTH
        and TOKEN_PATTERN.match(token) is not None
    )

class ShareableLinkGateway:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def resolve(self, token: str) -> PublicApplicationStatus:
        # Malformed tokens are answered like unknown ones, without a query
        if not token or not is_well_formed(token):
            raise NotFoundError("Application")

        result = await self.session.exec(select(Application).where(Application.shareable_link == token))
        application = result.first()
        if application is None:
            logger.info("Unknown share link requested")
            raise NotFoundError("Application")

        candidate = await self.session.get(Candidate, application.candidate_id)
        client = await self.session.get(Client, application.client_id)
        if candidate is None or client is None:
            raise NotFoundError("Application")

        items = await self.session.exec(
            select(DocumentChecklistItem).where(
                DocumentChecklistItem.application_id == application.id,
                DocumentChecklistItem.required_from == RequiredFrom.CLIENT.value,
            )
        )
        documents = [
            PublicChecklistItem(
                document_name=item.document_name,
                required=item.required,
                received=DocumentStatus(item.status) == DocumentStatus.RECEIVED,
            )
            for item in sorted(
                items.all(),
                key=lambda i: (STAGE_POSITION[as_status(i.stage)], i.sort_order, i.document_name),
            )
        ]

        return PublicApplicationStatus(
            candidate_first_name=candidate.first_name,
            candidate_last_name=candidate.last_name,
            client_name=client.name,
            status=as_status(application.status),
            type=application.type,
            created_at=application.created_at,
            exact_arrival_date=application.exact_arrival_date,
            documents=documents,
        )
