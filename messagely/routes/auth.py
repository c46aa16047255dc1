import logging

from fastapi import APIRouter, Depends

from ..auth import TokenService, get_db, get_pwd_ctx, get_token_service
from ..crud import authenticate, register as register_user, update_login_timestamp
from ..errors import UnauthorizedError
from ..schemas.users import LoginIn, RegisterIn, TokenOut

logger = logging.getLogger('messagely')

router = APIRouter()


@router.post('/register', response_model=TokenOut)
async def register(
    payload: RegisterIn,
    db=Depends(get_db),
    pwd_ctx=Depends(get_pwd_ctx),
    tokens: TokenService = Depends(get_token_service),
):
    user = await register_user(
        db,
        pwd_ctx,
        username=payload.username,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )
    token = tokens.issue(user.username)
    await update_login_timestamp(db, user.username)
    logger.info({'msg': 'user_registered', 'username': user.username})
    return {'token': token}


@router.post('/login', response_model=TokenOut)
async def login(
    payload: LoginIn,
    db=Depends(get_db),
    pwd_ctx=Depends(get_pwd_ctx),
    tokens: TokenService = Depends(get_token_service),
):
    if not await authenticate(db, pwd_ctx, payload.username, payload.password):
        logger.info({'msg': 'login_failed', 'username': payload.username})
        raise UnauthorizedError('Invalid username and/or password.')
    await update_login_timestamp(db, payload.username)
    logger.info({'msg': 'user_logged_in', 'username': payload.username})
    return {'token': tokens.issue(payload.username)}
