import logging
import logging.handlers
from pathlib import Path
from typing import Optional

LOGGER_NAME = "release_dashboard"


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Avoid adding handlers twice if reloaded
    if logger.handlers:
        return logger

    fmt = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(fmt)
    logger.addHandler(console_handler)

    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.TimedRotatingFileHandler(
            str(log_file), when="D", interval=7, backupCount=10, encoding="utf-8"
        )
        file_handler.suffix = "_%Y-%m-%d"
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)
        logger.info(f"Logging to {log_file} with 7-day rotation")

    return logger
