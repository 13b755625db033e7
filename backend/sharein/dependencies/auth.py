from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sharein.core.database import get_db
from sharein.core.errors import InvalidToken, Unauthorized
from sharein.core.security import ACCESS
from sharein.models.user import User

TOKEN_HEADER = "x-auth-token"


def extract_token(request: Request) -> str | None:
    token = request.headers.get(TOKEN_HEADER)
    if token:
        return token.strip()
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return None


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    token = extract_token(request)
    if not token:
        raise Unauthorized()

    user_id = request.app.state.token_issuer.verify_token(token, ACCESS)
    user = await db.get(User, user_id)
    if user is None:
        # Signed for an account that no longer exists.
        raise InvalidToken()

    request.state.user_id = user.id
    return user
