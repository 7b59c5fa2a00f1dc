"""
Logger helpers for uestc_client.

Every module logs through a named logger under ``uestc_client``. The
loggers propagate to the root logger, so an application that calls
``logging.basicConfig()`` (or installs a rich handler, like the CLI)
sees the portal client's messages without extra setup.
"""
import logging
from typing import Union


PACKAGE_LOGGERS = (
    'uestc_client',
    'uestc_client.client',
    'uestc_client.auth',
    'uestc_client.cookies',
    'uestc_client.wechat',
)


def root_configured() -> bool:
    return bool(logging.getLogger().handlers)


def get_logger(name: str) -> logging.Logger:
    """
    Get a package logger.

    When nothing has configured the root logger yet, the logger is capped
    at WARNING so a library import stays quiet. Otherwise its level is
    left alone and inherited.
    """
    logger = logging.getLogger(name)
    logger.propagate = True
    if not root_configured():
        logger.setLevel(logging.WARNING)
    return logger


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Set the level of every uestc_client logger.

    Args:
        level: Logging level, as a number or a name like ``"DEBUG"``
    """
    for name in PACKAGE_LOGGERS:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = True
