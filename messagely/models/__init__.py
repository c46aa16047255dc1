from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def make_engine(settings) -> AsyncEngine:
    kwargs = {'future': True, 'echo': False}
    # sqlite pools do not accept a checkout timeout
    if not settings.DATABASE_URL.startswith('sqlite'):
        kwargs['pool_timeout'] = settings.DB_POOL_TIMEOUT
        kwargs['pool_pre_ping'] = True
    return create_async_engine(settings.DATABASE_URL, **kwargs)


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_models(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Import models to register tables
from .users import User  # noqa: F401,E402
from .messages import Message  # noqa: F401,E402
