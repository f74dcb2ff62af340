# src/insider_relay/utils/logging.py
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict, Any

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"

def setup_logging(config: Dict[str, Any]) -> logging.Logger:
    """
    Configures logging for the application from the 'logging' config section.
    """
    log_level_str = str(config.get("level", "INFO")).upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    log_format = config.get("format", DEFAULT_LOG_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove any existing handlers to avoid duplication if setup_logging is called multiple times
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(log_format)

    if config.get("console", True):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)

    if config.get("file"):
        log_file_path = Path(config["file"])
        log_file_path.parent.mkdir(parents=True, exist_ok=True)

        max_bytes = config.get("max_size", 10 * 1024 * 1024)  # Default 10MB
        backup_count = config.get("backup_count", 5)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(log_level)
        root_logger.addHandler(file_handler)

    # Silence overly verbose libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    app_logger = logging.getLogger("insider_relay")
    app_logger.debug(f"Logging setup complete. Level: {log_level_str}, File: {config.get('file')}")
    return app_logger
