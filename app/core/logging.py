import logging
import sys
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "[%(asctime)s] %(levelname)s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """Настройка логирования приложения

    Вызывается один раз при создании приложения; модули получают
    логгеры через logging.getLogger(__name__).
    """
    logger = logging.getLogger("app")
    logger.setLevel(getattr(logging, (level or settings.log_level).upper(), logging.INFO))

    # Избегаем дублирования обработчиков при повторном вызове
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    return logger
