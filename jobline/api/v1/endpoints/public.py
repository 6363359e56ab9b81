from fastapi import APIRouter, Depends, Response
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.api import deps
from jobline.models.public_status import PublicApplicationStatus
from jobline.services.share_gateway import ShareableLinkGateway

router = APIRouter()

@router.get("/share/{shareable_link}", response_model=PublicApplicationStatus)
async def read_shared_application(
    shareable_link: str,
    response: Response,
    session: AsyncSession = Depends(deps.get_session),
):
    """
    Client-facing status page. No login: the link itself grants access.
    """
    status_page = await ShareableLinkGateway(session).resolve(shareable_link)
    response.headers["Cache-Control"] = "no-store"
    return status_page
