# posapp/utils/database.py

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from posapp.config import settings

# ────────────── Base для моделей ──────────────
Base = declarative_base()  # базовый класс для всех моделей SQLAlchemy

# ────────────── URL базы данных ──────────────
SQLALCHEMY_DATABASE_URL = settings.DATABASE_URL

# ────────────── Асинхронный движок ──────────────
engine = create_async_engine(
    SQLALCHEMY_DATABASE_URL,
    echo=settings.LOG_PRINT_DB.lower() in ("1", "true", "yes")
)

# ────────────── Асинхронная сессия ──────────────
AsyncSessionLocal = sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # объекты остаются читаемыми после commit (ответы строятся после записи)
)

# ────────────── Инициализация базы данных ──────────────
async def init_db():
    """
    Создаёт все таблицы в базе данных (если ещё не созданы).
    Уникальный индекс по order_id создаётся вместе с таблицей orders,
    на нём держится идемпотентная запись заказов.
    """
    from posapp.models import order  # noqa: F401  регистрация модели в metadata

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    """Закрывает все соединения пула (вызывается при остановке приложения)."""
    await engine.dispose()
