"""
Logging for the exmcmc package.

All module loggers are children of the package logger ``"exmcmc"``, which owns
the handlers once ``ExmcmcLogger.get_logger()`` has been called. The run
loop reports at INFO, the Metropolis-Hastings updates report their
log-likelihoods and ratios at DEBUG.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

PACKAGE_LOGGER = "exmcmc"


class ExmcmcLogger:
    """Factory class for configured exmcmc loggers."""

    _formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    @classmethod
    def get_logger(
        cls,
        name: str = PACKAGE_LOGGER,
        level: int = logging.INFO,
        log_file: Optional[str] = None,
        propagate: bool = False,
    ) -> logging.Logger:
        """
        Return the logger ``name`` with a stream handler and, if ``log_file``
        is given, a file handler. Handlers are only attached once.
        """
        logger = logging.getLogger(name)
        logger.setLevel(level)
        logger.propagate = propagate

        if not any(type(h) is logging.StreamHandler for h in logger.handlers):
            stream_handler = logging.StreamHandler()
            stream_handler.setFormatter(cls._formatter)
            logger.addHandler(stream_handler)

        if log_file is not None:
            cls.add_file_handler(log_file, name)

        return logger

    @classmethod
    def add_file_handler(cls, log_file: str, name: str = PACKAGE_LOGGER) -> logging.FileHandler:
        """Also write the records of logger ``name`` to ``log_file``, creating its directory"""
        logger = logging.getLogger(name)
        log_path = Path(log_file).resolve()
        for handler in logger.handlers:
            if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == log_path:
                return handler

        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path)
        file_handler.setFormatter(cls._formatter)
        logger.addHandler(file_handler)
        return file_handler

    @staticmethod
    def close_file_handlers(name: str = PACKAGE_LOGGER) -> int:
        """Detach and close the file handlers of logger ``name``, return how many were closed"""
        logger = logging.getLogger(name)
        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        for handler in file_handlers:
            logger.removeHandler(handler)
            handler.close()
        return len(file_handlers)

    @staticmethod
    def set_level(level: int, name: str = PACKAGE_LOGGER) -> None:
        """Change the verbosity, e.g. ``logging.DEBUG`` to see every logged MH ratio"""
        logging.getLogger(name).setLevel(level)


def get_module_logger(module_name: str) -> logging.Logger:
    """
    Child logger of the package logger for a given module, e.g. ``exmcmc.samplers.mcmc``.

    Importing exmcmc only attaches a NullHandler to the package logger; records
    are emitted once the application calls ``ExmcmcLogger.get_logger`` or
    configures logging itself.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if not any(isinstance(h, logging.NullHandler) for h in package_logger.handlers):
        package_logger.addHandler(logging.NullHandler())
    return logging.getLogger(module_name)
