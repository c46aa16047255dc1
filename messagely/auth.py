from datetime import datetime, timedelta, timezone

from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError
from passlib.context import CryptContext

from . import crud
from .errors import ForbiddenError, UnauthorizedError


def make_password_context(work_factor: int) -> CryptContext:
    return CryptContext(schemes=['bcrypt'], deprecated='auto', bcrypt__rounds=work_factor)


class TokenService:
    """Signs and verifies the bearer tokens that identify a caller.

    A token carries the username as its only claim. When ``expire_minutes`` is
    set an ``exp`` claim is added as well and enforced on verification.
    """

    def __init__(self, secret: str, algorithm: str = 'HS256', expire_minutes: int | None = None):
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, username: str) -> str:
        to_encode = {'username': username}
        if self.expire_minutes:
            to_encode['exp'] = datetime.now(timezone.utc) + timedelta(minutes=self.expire_minutes)
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError:
            raise UnauthorizedError('Invalid token')
        username = payload.get('username')
        if not isinstance(username, str) or not username:
            raise UnauthorizedError('Invalid token')
        return username


# request-scoped accessors for the objects create_app puts on app.state

def get_db(request: Request):
    return request.app.state.db


def get_pwd_ctx(request: Request) -> CryptContext:
    return request.app.state.pwd_ctx


def get_token_service(request: Request) -> TokenService:
    return request.app.state.tokens


bearer_scheme = HTTPBearer(auto_error=False)

# messages.id is a 32-bit INTEGER column
MAX_MESSAGE_ID = 2**31 - 1


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> str:
    """Resolve the caller from the bearer token and remember it on the request."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError('Missing token')
    username = tokens.verify(credentials.credentials)
    request.state.user = username
    return username


async def ensure_correct_user(username: str, current_user: str = Depends(get_current_user)) -> str:
    if current_user != username:
        raise ForbiddenError('Not allowed to access this user')
    return current_user


async def get_message_for_participant(
    id: int = Path(ge=1, le=MAX_MESSAGE_ID),
    current_user: str = Depends(get_current_user),
    db=Depends(get_db),
) -> dict:
    message = await crud.get_message(db, id)
    if current_user not in (message['from_user']['username'], message['to_user']['username']):
        raise ForbiddenError('Not allowed to view this message')
    return message


async def get_message_for_recipient(
    id: int = Path(ge=1, le=MAX_MESSAGE_ID),
    current_user: str = Depends(get_current_user),
    db=Depends(get_db),
) -> dict:
    message = await crud.get_message(db, id)
    if current_user != message['to_user']['username']:
        raise ForbiddenError('Only the recipient can mark a message as read')
    return message
