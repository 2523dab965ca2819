# Copyright 2024 inuex35
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Logging configuration for pyspp

Library modules log through ``logging.getLogger(__name__)`` so every logger
lives under the ``pyspp`` hierarchy; applications call ``setup_logger`` (or
``setup_logger_from_config``) once to attach handlers.
"""

import logging
import sys
from enum import Enum
from typing import Optional

ROOT_LOGGER = "pyspp"


class LogLevel(Enum):
    """Log levels for the system"""
    TRACE = 5
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


logging.addLevelName(LogLevel.TRACE.value, "TRACE")


def _trace(self, message, *args, **kwargs):
    """Log at TRACE level (per-iteration solver detail)"""
    if self.isEnabledFor(LogLevel.TRACE.value):
        self._log(LogLevel.TRACE.value, message, args, **kwargs)


logging.Logger.trace = _trace


def _level(level: str) -> int:
    return getattr(LogLevel, level.upper()).value


class ColoredFormatter(logging.Formatter):
    """Colored log formatter"""

    COLORS = {
        'TRACE': '\033[36m',     # Cyan
        'DEBUG': '\033[34m',     # Blue
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        levelname = record.levelname
        log_color = self.COLORS.get(levelname, self.RESET)
        record.levelname = f"{log_color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _handler(handler: logging.Handler, level: int,
             formatter: logging.Formatter) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logger(name: str = ROOT_LOGGER,
                 level: str = "INFO",
                 log_file: Optional[str] = None,
                 console: bool = True) -> logging.Logger:
    """
    Attach console and/or file handlers to a logger, replacing old ones

    Parameters:
    -----------
    name : str
        Logger name, normally the package logger ``pyspp``
    level : str
        TRACE, DEBUG, INFO, WARNING, ERROR or CRITICAL
    log_file : Optional[str]
        Also write plain (uncolored) records to this file
    console : bool
        Write colored records to stdout

    Returns:
    --------
    logging.Logger
    """
    lvl = _level(level)
    logger = logging.getLogger(name)
    logger.setLevel(lvl)
    for old in logger.handlers:
        old.close()
    logger.handlers = []

    if console:
        logger.addHandler(_handler(logging.StreamHandler(sys.stdout), lvl,
                                   ColoredFormatter(LOG_FORMAT, datefmt='%H:%M:%S')))
    if log_file:
        logger.addHandler(_handler(logging.FileHandler(log_file), lvl,
                                   logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')))

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get logger by name"""
    return logging.getLogger(name)


class LogContext:
    """Context manager for temporary log level change"""

    def __init__(self, logger: logging.Logger, level: str):
        self.logger = logger
        self.new_level = _level(level)
        self.old_level = None

    def __enter__(self):
        self.old_level = self.logger.level
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self.old_level)


class LoggerConfig:
    """Logger configuration manager for module-specific log levels"""

    def __init__(self):
        self.module_levels = {}
        self.default_level = "INFO"
        self.log_file = None
        self.console = True

    def set_module_level(self, module_name: str, level: str):
        """Set log level for a module such as ``pyspp.gnss.spp``"""
        _level(level)
        self.module_levels[module_name] = level
        logging.getLogger(module_name).setLevel(_level(level))

    def configure_from_dict(self, config: dict):
        """Configure from dictionary"""
        if 'default_level' in config:
            self.default_level = config['default_level']
        if 'log_file' in config:
            self.log_file = config['log_file']
        if 'console' in config:
            self.console = config['console']
        for module, level in config.get('module_levels', {}).items():
            self.set_module_level(module, level)

    def setup_all_loggers(self) -> logging.Logger:
        """Attach handlers to the package logger and apply module levels"""
        root = setup_logger(ROOT_LOGGER, self.default_level, self.log_file, self.console)
        # Handlers live on the package logger only; module loggers propagate to
        # them, so handlers must pass the most verbose module level.
        lowest = min([_level(self.default_level)] + [_level(v) for v in self.module_levels.values()])
        for handler in root.handlers:
            handler.setLevel(lowest)
        for module, level in self.module_levels.items():
            logging.getLogger(module).setLevel(_level(level))
        return root


logger_config = LoggerConfig()


def setup_logger_from_config(config: dict) -> logging.Logger:
    """Setup loggers from configuration dictionary

    Example config:
    {
        'default_level': 'INFO',
        'log_file': 'spp.log',
        'console': True,
        'module_levels': {
            'pyspp.gnss.spp': 'TRACE',
            'pyspp.io.rinex': 'WARNING'
        }
    }
    """
    logger_config.configure_from_dict(config)
    return logger_config.setup_all_loggers()
