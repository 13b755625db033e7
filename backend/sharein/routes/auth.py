from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sharein.core.database import get_db
from sharein.core.errors import Unauthorized
from sharein.dependencies.auth import get_current_user
from sharein.models.user import User
from sharein.schemas.user import RefreshRequest, Token, TokenCheck, UserCreate, UserLogin, UserResponse
from sharein.services import users

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.get("/profile/{uid}", response_model=UserResponse)
async def get_profile(uid: str, db: AsyncSession = Depends(get_db)):
    return await users.get_user(db, uid)


@router.post("/signup", response_model=Token, response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
async def signup(payload: UserCreate, request: Request, db: AsyncSession = Depends(get_db)):
    user = await users.create_user(
        db,
        email=payload.email,
        password=payload.password,
        name=payload.name,
        rounds=request.app.state.settings.BCRYPT_ROUNDS,
    )
    issuer = request.app.state.token_issuer
    return Token(token=issuer.issue_access_token(user.id), refresh_token=issuer.issue_refresh_token(user.id))


@router.post("/signin", response_model=Token)
async def signin(payload: UserLogin, request: Request, db: AsyncSession = Depends(get_db)):
    user = await users.verify_credentials(db, payload.email, payload.password)
    issuer = request.app.state.token_issuer
    return Token(token=issuer.issue_access_token(user.id), refresh_token=issuer.issue_refresh_token(user.id))


@router.post("/refresh-token", response_model=Token, response_model_exclude_none=True)
async def refresh_token(payload: RefreshRequest, request: Request):
    if not payload.refresh_token:
        raise Unauthorized("Refresh token required")
    return Token(token=request.app.state.token_issuer.refresh(payload.refresh_token))


@router.post("/verify-token", response_model=TokenCheck)
async def verify_token(current_user: User = Depends(get_current_user)):
    return TokenCheck(message="Token is valid", user_id=current_user.id)
