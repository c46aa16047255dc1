from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from . import Base


class Message(Base):
    __tablename__ = 'messages'
    id = Column(Integer, primary_key=True, autoincrement=True)
    from_username = Column(String(150), ForeignKey('users.username'), index=True, nullable=False)
    to_username = Column(String(150), ForeignKey('users.username'), index=True, nullable=False)
    body = Column(Text, nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
