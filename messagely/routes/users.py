from fastapi import APIRouter, Depends

from ..auth import ensure_correct_user, get_current_user, get_db
from ..crud import all_users, get_user, messages_from, messages_to
from ..schemas.messages import ReceivedMessagesOut, SentMessagesOut
from ..schemas.users import UserDetailEnvelope, UserListOut

router = APIRouter()


@router.get('', response_model=UserListOut)
async def list_users(current_user: str = Depends(get_current_user), db=Depends(get_db)):
    return {'users': await all_users(db)}


@router.get('/{username}', response_model=UserDetailEnvelope)
async def user_detail(username: str, current_user: str = Depends(get_current_user), db=Depends(get_db)):
    return {'user': await get_user(db, username)}


@router.get('/{username}/to', response_model=ReceivedMessagesOut)
async def messages_to_user(username: str, current_user: str = Depends(ensure_correct_user), db=Depends(get_db)):
    return {'messages': await messages_to(db, username)}


@router.get('/{username}/from', response_model=SentMessagesOut)
async def messages_from_user(username: str, current_user: str = Depends(ensure_correct_user), db=Depends(get_db)):
    return {'messages': await messages_from(db, username)}
