from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from jobline.api import deps
from jobline.models.company import Company, CompanyRead
from jobline.models.user import User, UserRead

router = APIRouter()

@router.get("/me", response_model=UserRead)
async def read_user_me(
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    Get current user.
    """
    return current_user

@router.get("/me/company", response_model=CompanyRead)
async def read_user_company(
    session: AsyncSession = Depends(deps.get_session),
    current_user: User = Depends(deps.get_current_active_user),
):
    """
    The agency the current user works for.
    """
    return await session.get(Company, current_user.company_id)
