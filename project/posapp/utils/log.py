# posapp/utils/log.py
# Логирование событий

import os
import datetime
import logging
from enum import Enum

from aiologger import Logger
from aiologger.handlers.files import AsyncFileHandler

from posapp.config import settings

fallback_logger = logging.getLogger("posapp.log")


class Log:
    def __init__(self, log_dir: str | None = None, log_print: bool | None = None):
        self.log_dir = log_dir or settings.LOG_DIR
        os.makedirs(self.log_dir, exist_ok=True)
        self.handlers = {}
        if log_print is None:
            log_print = settings.LOG_PRINT.lower() in ("1", "true", "yes")
        self.log_print = log_print

    def build_log_path(self, target: str, now: datetime.datetime) -> str:
        """
        Формируем путь к лог-файлу:
        log/2025/10/04_order.log
        """
        base_dir = os.path.join(self.log_dir, f"{now.year}", f"{now:%m}")
        os.makedirs(base_dir, exist_ok=True)

        suffix = f"_{target}" if target else ""
        return os.path.join(base_dir, f"{now:%d}{suffix}.log")

    async def get_logger(self, target: str, now: datetime.datetime) -> Logger:
        """Асинхронный логгер для target (новый файл на каждый день)."""
        log_path = self.build_log_path(target, now)

        if target not in self.handlers or self.handlers[target]["path"] != log_path:
            handler = AsyncFileHandler(filename=log_path, mode="a", encoding="utf-8")
            target_logger = Logger(name=f"logger_{target}")
            target_logger.add_handler(handler)

            if target in self.handlers:
                await self.close_logger(target)

            self.handlers[target] = {
                "path": log_path,
                "logger": target_logger,
                "handler": handler,
            }

        return self.handlers[target]["logger"]

    def format_line(self, now: datetime.datetime, target: str, message: str, data: dict | None) -> str:
        line = f"{now:%d.%m.%Y %H:%M:%S} {target}: {message}"
        if data:
            line += f": {self.safe_serialize(data)}"
        return line

    # Асинхронное
    async def log_info(
        self,
        target: str = "",
        message: str = "",
        data: dict | None = None,
        is_console: bool = None,
    ):
        now = datetime.datetime.now()
        log_data_str = self.format_line(now, target, message, data)

        target_logger = await self.get_logger(target, now)
        await target_logger.info(log_data_str)

        should_print = self.log_print if is_console is None else is_console
        if should_print:
            print(log_data_str)

    async def log_error(
        self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = True
    ):
        await self.log_info(target, f"ERROR: {message}", data, is_console)

    # WARNING: асинхронный вариант
    async def log_warning(self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None):
        await self.log_info(target, f"WARNING: {message}", data, is_console)

    # Синхронное (старт/остановка приложения, вне event loop)
    def log_info_sync(
        self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None
    ):
        now = datetime.datetime.now()
        log_path = self.build_log_path(target, now)
        log_data_str = self.format_line(now, target, message, data)

        logger = logging.getLogger(f"sync_logger_{target}")
        logger.setLevel(logging.INFO)
        logger.propagate = False

        if not any(getattr(h, "baseFilename", None) == os.path.abspath(log_path) for h in logger.handlers):
            for old in list(logger.handlers):
                logger.removeHandler(old)
                old.close()
            handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
            handler.setFormatter(logging.Formatter("%(message)s"))
            logger.addHandler(handler)

        logger.info(log_data_str)

        should_print = self.log_print if is_console is None else is_console
        if should_print:
            print(log_data_str)

    def log_error_sync(
        self, target: str = "", message: str = "", data: dict | None = None, is_console: bool = None
    ):
        self.log_info_sync(target, f"ERROR: {message}", data, is_console)

    def safe_serialize(self, obj):
        """
        Преобразуем объект в сериализуемый вид для лога:
        - dict, list, tuple рекурсивно
        - datetime → ISO строка, Enum → значение
        - Pydantic модели через model_dump
        - любые несериализуемые объекты → строка с типом
        """
        if obj is None:
            return None
        elif isinstance(obj, Enum):
            return obj.value
        elif isinstance(obj, (str, int, float, bool)):
            return obj
        elif isinstance(obj, (datetime.datetime, datetime.date)):
            return obj.isoformat()
        elif isinstance(obj, dict):
            return {k: self.safe_serialize(v) for k, v in obj.items()}
        elif isinstance(obj, (list, tuple, set)):
            return [self.safe_serialize(v) for v in obj]
        elif hasattr(obj, "model_dump"):  # Pydantic
            return self.safe_serialize(obj.model_dump())
        else:
            return f"<{type(obj).__name__}>"

    async def close_logger(self, target: str):
        entry = self.handlers.pop(target, None)
        if entry is None:
            return
        try:
            await entry["logger"].shutdown()
        except Exception as e:
            fallback_logger.warning("Не удалось закрыть логгер %s: %s", target, e)

    async def shutdown(self):
        for target in list(self.handlers):
            await self.close_logger(target)
