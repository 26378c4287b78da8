import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from . import settings


def setup_logger(
    name: str = "floor_replan", log_level: int = logging.INFO, log_dir: Path | None = None
) -> logging.Logger:
    """
    Wires the "floor_replan" logger used by the CLI: bare messages on stdout
    for the operator, timestamped records in LOG_DIR/floor_replan.log.
    Engine modules log through child loggers and inherit both handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Repeated CLI invocations in one process reuse the handlers.
    if logger.handlers:
        return logger

    console_format = logging.Formatter("%(message)s")
    file_format = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Operator output
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(console_format)
    logger.addHandler(console_handler)

    # Audit trail of uploads, runs and executions
    log_dir = log_dir or settings.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "floor_replan.log"

    file_handler = RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"  # 5 MB
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(file_format)
    logger.addHandler(file_handler)

    return logger
