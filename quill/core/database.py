"""
데이터베이스 설정 및 연결
"""

import logging
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy import MetaData, event, types
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from quill.core.config import settings

logger = logging.getLogger(__name__)


# SQLite와 PostgreSQL 모두 지원하는 JSON 타입
class JSON(types.TypeDecorator):
    """Platform-independent JSON type."""
    impl = types.JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            from sqlalchemy.dialects.postgresql import JSONB
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(types.JSON())


# Base 클래스 정의
class Base(DeclarativeBase):
    """SQLAlchemy Base 클래스"""
    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s"
        }
    )


def normalize_database_url(url: str) -> str:
    """동기 드라이버 URL을 비동기 드라이버 URL로 변환"""
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


def _install_sqlite_transaction_hooks(engine: AsyncEngine) -> None:
    # aiosqlite 드라이버가 BEGIN을 직접 관리하지 않도록 한다 (SAVEPOINT 동작 보장)
    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def build_engine(database_url: Optional[str] = None, echo: Optional[bool] = None) -> AsyncEngine:
    """비동기 엔진 생성"""
    url = normalize_database_url(database_url or settings.DATABASE_URL)
    if url.startswith("sqlite"):
        engine = create_async_engine(
            url,
            echo=settings.DEBUG if echo is None else echo,
            future=True,
        )
        _install_sqlite_transaction_hooks(engine)
        return engine

    return create_async_engine(
        url,
        echo=settings.DEBUG if echo is None else echo,
        future=True,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """세션 팩토리 생성"""
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


# SQLAlchemy 비동기 엔진 및 세션 팩토리
engine = build_engine()
AsyncSessionLocal = build_session_factory(engine)


# 데이터베이스 세션 의존성
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """데이터베이스 세션 의존성"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def _ensure_sqlite_directory(bind: AsyncEngine) -> None:
    url = make_url(str(bind.url))
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """로깅 설정 및 (개발 환경) 테이블 생성"""
    logging.basicConfig(level=settings.LOG_LEVEL)
    bind = bind or engine

    # 모델 등록
    import quill.models  # noqa: F401

    _ensure_sqlite_directory(bind)
    async with bind.begin() as conn:
        if settings.ENVIRONMENT in ("development", "test"):
            await conn.run_sync(Base.metadata.create_all)
            logger.info("데이터베이스 테이블 생성 완료")


# 데이터베이스 연결 테스트
async def check_db_connection(bind: Optional[AsyncEngine] = None) -> bool:
    """데이터베이스 연결 테스트"""
    try:
        async with (bind or engine).connect() as conn:
            await conn.exec_driver_sql("SELECT 1")
        return True
    except Exception as e:
        logger.error(f"데이터베이스 연결 실패: {e}")
        return False


def enum_values(enum_cls):
    """Enum 컬럼에 멤버 이름 대신 값을 저장"""
    return [member.value for member in enum_cls]
