import logging
from datetime import timedelta
from typing import Any
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel import select

from jobline.api import deps
from jobline.core import security
from jobline.core.config import settings
from jobline.models.token import Token
from jobline.models.user import User

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/login/access-token", response_model=Token)
async def login_access_token(
    session: AsyncSession = Depends(deps.get_session),
    form_data: OAuth2PasswordRequestForm = Depends()
) -> Any:
    """
    OAuth2 password login for agency staff. The token subject is the user
    id; the agency and role are looked up again on every request.
    """
    email = form_data.username.strip().lower()
    result = await session.exec(select(User).where(User.email == email))
    user = result.first()

    if not user or not security.verify_password(form_data.password, user.hashed_password):
        logger.info("Failed login for %s", email)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect email or password"
        )
    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")

    token = security.create_access_token(
        user.id, expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return Token(access_token=token)
