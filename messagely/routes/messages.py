import logging

from fastapi import APIRouter, Depends

from ..auth import get_current_user, get_db, get_message_for_participant, get_message_for_recipient
from ..crud import create_message, mark_read
from ..schemas.messages import (
    MessageCreatedEnvelope,
    MessageDetailEnvelope,
    MessageIn,
    MessageReadEnvelope,
)

logger = logging.getLogger('messagely')

router = APIRouter()


@router.post('', response_model=MessageCreatedEnvelope)
async def send(payload: MessageIn, current_user: str = Depends(get_current_user), db=Depends(get_db)):
    m = await create_message(db, current_user, payload.to_username, payload.body)
    logger.info({'msg': 'message_sent', 'message_id': m['id'], 'to_username': payload.to_username})
    return {'message': m}


@router.get('/{id}', response_model=MessageDetailEnvelope)
async def detail(message: dict = Depends(get_message_for_participant)):
    return {'message': message}


@router.post('/{id}/read', response_model=MessageReadEnvelope)
async def read(message: dict = Depends(get_message_for_recipient), db=Depends(get_db)):
    result = await mark_read(db, message['id'])
    logger.info({'msg': 'message_read', 'message_id': result['id']})
    return {'message': result}
