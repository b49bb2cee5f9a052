import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOG_DIR = os.path.join(os.path.expanduser("~"), ".hardware_inventory", "logs")


def setup_logger(name="HardwareInventory", log_file="inventory.log", level=logging.INFO):
    """
    Sets up a logger with console and rotating file handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent adding handlers multiple times
    if logger.hasHandlers():
        return logger

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File Handler (Rotating)
    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, log_file), maxBytes=5*1024*1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except Exception as e:
        print(f"Failed to setup file logging: {e}")

    return logger


def set_level(level_name: str) -> None:
    """Adjust the shared logger level from a config string such as "DEBUG"."""
    level = logging.getLevelName(str(level_name).upper())
    if isinstance(level, int):
        log.setLevel(level)
    else:
        log.warning(f"Ignoring unknown log level: {level_name}")


log = setup_logger()
