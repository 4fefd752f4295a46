# posapp/main.py

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
from dotenv import load_dotenv
from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError

from posapp.config import settings
from posapp.utils.clock import system_clock
from posapp.utils.log import Log
from posapp.utils.database import init_db, close_db
from posapp.utils.order_id import TimestampOrderIdGenerator
from posapp.middleware.db_middleware import DBSessionMiddleware

import os
import multiprocessing

# --- загрузка переменных окружения ---
load_dotenv()

# --- sync логгер для раннего старта ---
boot_log = Log()
if os.environ.get("RUN_MAIN") == "true" or multiprocessing.current_process().name == "MainProcess":
    boot_log.log_info_sync(target="startup", message="Импорты main.py выполнены", is_console=False)

# ────────────── Lifespan ──────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    boot_log.log_info_sync(target="startup", message="lifespan: startup начат")

    # Инициализация БД
    await init_db()
    boot_log.log_info_sync(target="startup", message="База инициализирована", data={"timezone": settings.TIMEZONE})

    # Генератор order_id и часы (тесты подменяют их в app.state)
    app.state.id_generator = TimestampOrderIdGenerator()
    app.state.clock = system_clock

    app.state.log = Log()
    await app.state.log.log_info(target="startup", message="Async Log инициализирован")

    yield

    # shutdown
    await app.state.log.log_info(target="shutdown", message="Остановка приложения")
    await app.state.log.shutdown()
    await close_db()
    boot_log.log_info_sync(target="shutdown", message="Log и база корректно закрыты")

# ────────────── Создаём FastAPI приложение ──────────────
app = FastAPI(title="POS Orders & Dashboard API", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# DB middleware для request.state.db
app.add_middleware(DBSessionMiddleware)

# ────────────── Ошибки хранилища ──────────────
@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    log = getattr(request.app.state, "log", None)
    message = f"Ошибка базы данных: {exc}"
    if log is not None:
        await log.log_error("database", message, {"path": request.url.path})
    else:
        boot_log.log_error_sync("database", message, {"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Ошибка базы данных"},
    )

@app.get("/")
def read_root():
    return {"message": "POS server is running"}

# ────────────── Подключение роутов ──────────────
from posapp.routes import order, dashboard

app.include_router(order.router, prefix="/orders", tags=["order"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])

# старые пути кассового клиента
app.include_router(order.router, prefix="/api/order", include_in_schema=False)
app.include_router(dashboard.router, prefix="/api/dashboard", include_in_schema=False)

# ────────────── Запуск uvicorn ──────────────
if __name__ == "__main__":
    boot_log.log_info_sync(target="startup", message="Запуск uvicorn.run")
    uvicorn.run(
        "posapp.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
        reload=True
    )
