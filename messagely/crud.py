import logging
from datetime import datetime, timezone

from passlib.context import CryptContext
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import aliased
from starlette.concurrency import run_in_threadpool

from .errors import ConflictError, NotFoundError, ValidationError
from .models.messages import Message
from .models.users import User

logger = logging.getLogger('messagely')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _utc(value: datetime | None) -> datetime | None:
    # sqlite drops tzinfo on DateTime(timezone=True); stored values are UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _counterparty(user: User) -> dict:
    return {
        'username': user.username,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'phone': user.phone,
    }


# credentials

async def register(db, pwd_ctx: CryptContext, username: str, password: str,
                   first_name: str, last_name: str, phone: str) -> User:
    """Create a user. The returned record's ``password`` is the bcrypt hash."""
    try:
        hashed = await run_in_threadpool(pwd_ctx.hash, password)
    except ValueError as exc:
        raise ValidationError(f'password: {exc}')
    now = utcnow()
    async with db() as session:
        user = User(
            username=username,
            password=hashed,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            join_at=now,
            last_login_at=now,
        )
        session.add(user)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise ConflictError(f'{username} is already taken')
        return user


async def authenticate(db, pwd_ctx: CryptContext, username: str, password: str) -> bool:
    async with db() as session:
        hashed = await session.scalar(select(User.password).where(User.username == username))
    if hashed is None:
        # burn the same time as a real check so unknown users are not detectable
        await run_in_threadpool(pwd_ctx.dummy_verify)
        return False
    try:
        return await run_in_threadpool(pwd_ctx.verify, password, hashed)
    except ValueError:
        logger.warning({'msg': 'unrecognized_password_hash', 'username': username})
        return False


async def update_login_timestamp(db, username: str) -> None:
    async with db() as session:
        await session.execute(
            update(User).where(User.username == username).values(last_login_at=utcnow())
        )
        await session.commit()


# user directory

async def all_users(db) -> list[dict]:
    async with db() as session:
        res = await session.execute(
            select(User.username, User.first_name, User.last_name, User.phone)
            .order_by(User.username.asc())
        )
        return [dict(row) for row in res.mappings().all()]


async def get_user(db, username: str) -> dict:
    async with db() as session:
        res = await session.execute(
            select(
                User.username,
                User.first_name,
                User.last_name,
                User.phone,
                User.join_at,
                User.last_login_at,
            ).where(User.username == username)
        )
        row = res.mappings().first()
    if row is None:
        raise NotFoundError(f'{username} cannot be found.')
    user = dict(row)
    user['join_at'] = _utc(user['join_at'])
    user['last_login_at'] = _utc(user['last_login_at'])
    return user


async def messages_from(db, username: str) -> list[dict]:
    to_user = aliased(User)
    async with db() as session:
        res = await session.execute(
            select(Message, to_user)
            .join(to_user, Message.to_username == to_user.username)
            .where(Message.from_username == username)
            .order_by(Message.sent_at.asc(), Message.id.asc())
        )
        return [
            {
                'id': m.id,
                'to_user': _counterparty(u),
                'body': m.body,
                'sent_at': _utc(m.sent_at),
                'read_at': _utc(m.read_at),
            }
            for m, u in res.all()
        ]


async def messages_to(db, username: str) -> list[dict]:
    from_user = aliased(User)
    async with db() as session:
        res = await session.execute(
            select(Message, from_user)
            .join(from_user, Message.from_username == from_user.username)
            .where(Message.to_username == username)
            .order_by(Message.sent_at.asc(), Message.id.asc())
        )
        return [
            {
                'id': m.id,
                'from_user': _counterparty(u),
                'body': m.body,
                'sent_at': _utc(m.sent_at),
                'read_at': _utc(m.read_at),
            }
            for m, u in res.all()
        ]


# messages

async def create_message(db, from_username: str, to_username: str, body: str) -> dict:
    async with db() as session:
        res = await session.execute(
            select(User.username).where(User.username.in_([from_username, to_username]))
        )
        found = set(res.scalars().all())
        for username in (from_username, to_username):
            if username not in found:
                raise NotFoundError(f'{username} cannot be found.')
        m = Message(from_username=from_username, to_username=to_username, body=body, sent_at=utcnow())
        session.add(m)
        await session.commit()
        return {
            'id': m.id,
            'from_username': m.from_username,
            'to_username': m.to_username,
            'body': m.body,
            'sent_at': m.sent_at,
        }


async def get_message(db, message_id: int) -> dict:
    from_user = aliased(User)
    to_user = aliased(User)
    async with db() as session:
        res = await session.execute(
            select(Message, from_user, to_user)
            .join(from_user, Message.from_username == from_user.username)
            .join(to_user, Message.to_username == to_user.username)
            .where(Message.id == message_id)
        )
        row = res.first()
    if row is None:
        raise NotFoundError(f'No such message: {message_id}')
    m, sender, recipient = row
    return {
        'id': m.id,
        'body': m.body,
        'sent_at': _utc(m.sent_at),
        'read_at': _utc(m.read_at),
        'from_user': _counterparty(sender),
        'to_user': _counterparty(recipient),
    }


async def mark_read(db, message_id: int) -> dict:
    """Set ``read_at`` if it is still unset; later calls keep the first value."""
    async with db() as session:
        exists = await session.scalar(select(Message.id).where(Message.id == message_id))
        if exists is None:
            raise NotFoundError(f'No such message: {message_id}')
        await session.execute(
            update(Message)
            .where(Message.id == message_id, Message.read_at.is_(None))
            .values(read_at=utcnow())
        )
        await session.commit()
        read_at = await session.scalar(select(Message.read_at).where(Message.id == message_id))
        return {'id': message_id, 'read_at': _utc(read_at)}
