from sqlalchemy import Column, String, Text, DateTime
from . import Base


class User(Base):
    __tablename__ = 'users'
    username = Column(String(150), primary_key=True)
    # bcrypt hash, never serialized to clients
    password = Column(Text, nullable=False)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    phone = Column(Text, nullable=False)
    join_at = Column(DateTime(timezone=True), nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
