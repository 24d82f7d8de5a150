from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from .config import Settings, get_settings


def build_engine(settings: Settings) -> AsyncEngine:
    url = make_url(settings.database_url)
    if url.get_backend_name() == "sqlite":
        # In-memory sqlite lives in a single connection; pool tuning does not apply.
        return create_async_engine(url, echo=settings.echo_sql)
    return create_async_engine(
        url,
        echo=settings.echo_sql,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


engine = build_engine(get_settings())

# Shared by request handlers and the lifecycle scheduler ticks.
async_session = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
