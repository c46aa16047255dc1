from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .users import UserSummaryOut


class MessageIn(BaseModel):
    to_username: str = Field(min_length=1)
    body: str = Field(min_length=1)


class MessageCreatedOut(BaseModel):
    id: int
    from_username: str
    to_username: str
    body: str
    sent_at: datetime


class MessageDetailOut(BaseModel):
    id: int
    body: str
    sent_at: datetime
    read_at: Optional[datetime]
    from_user: UserSummaryOut
    to_user: UserSummaryOut


class SentMessageOut(BaseModel):
    id: int
    to_user: UserSummaryOut
    body: str
    sent_at: datetime
    read_at: Optional[datetime]


class ReceivedMessageOut(BaseModel):
    id: int
    from_user: UserSummaryOut
    body: str
    sent_at: datetime
    read_at: Optional[datetime]


class MessageReadOut(BaseModel):
    id: int
    read_at: datetime


class MessageCreatedEnvelope(BaseModel):
    message: MessageCreatedOut


class MessageDetailEnvelope(BaseModel):
    message: MessageDetailOut


class MessageReadEnvelope(BaseModel):
    message: MessageReadOut


class SentMessagesOut(BaseModel):
    messages: List[SentMessageOut]


class ReceivedMessagesOut(BaseModel):
    messages: List[ReceivedMessageOut]
