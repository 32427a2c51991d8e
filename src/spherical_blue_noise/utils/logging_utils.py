# ===--------------------------------------------------------------------------------------===#
#
# Part of the Spherical Blue Noise Project, under the Apache License v2.0.
# See the LICENSE file for license information.
# SPDX-License-Identifier: Apache-2.0
#
# ===--------------------------------------------------------------------------------------===#
#
# This file implements logging setup for the spherical blue noise generator.
#
# ===--------------------------------------------------------------------------------------===#

from typing import Optional

import logging
import pathlib

PACKAGE_LOGGER_NAME: str = "spherical_blue_noise"
LOG_FORMAT: str = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


class SizeLimitedFormatter(logging.Formatter):
    """Logging formatter that enforces a maximum message size.

    Messages longer than the limit are cut off and marked with a truncation
    indicator, so that dumping a large point set or configuration into a log
    line cannot flood the output. The limit applies to the message content
    only, not to the timestamp and level added by the format string.

    Attributes:
        max_msg_sz: Maximum allowed length for log message content in characters.
    """

    def __init__(
        self, fmt: Optional[str] = None, datefmt: Optional[str] = None, max_msg_sz: int = 256
    ) -> None:
        """Initializes the size-limited formatter.

        Args:
            fmt: Format string for log messages.
            datefmt: Format string for the date/time portion of log messages.
            max_msg_sz: Maximum length of the message content in characters.

        Raises:
            ValueError: If max_msg_sz is less than 15 characters.
        """
        if max_msg_sz < 15:
            raise ValueError(
                "max_msg_sz must be at least 15 characters to accommodate truncation indicator"
            )

        super().__init__(fmt, datefmt)
        self.max_msg_sz: int = max_msg_sz

    def format(self, record: logging.LogRecord) -> str:
        """Formats the record, truncating its message if it exceeds the size limit."""
        message_content: str = record.getMessage()

        if len(message_content) > self.max_msg_sz:
            original_msg = record.msg
            original_args = record.args

            truncate_length: int = self.max_msg_sz - 15
            record.msg = message_content[:truncate_length] + "... [TRUNCATED]"
            record.args = None

            formatted: str = super().format(record)

            record.msg = original_msg
            record.args = original_args
            return formatted

        return super().format(record)


def get_logger(
    log_path: Optional[pathlib.Path | str] = None,
    level: int = logging.INFO,
    append_mode: bool = False,
    max_msg_sz: int = 256,
) -> logging.Logger:
    """Configures and returns the package logger.

    Library modules log through ``logging.getLogger(__name__)`` and therefore
    propagate to this logger. It always writes to stderr and additionally to
    ``log_path`` when given. Calling this again replaces previous handlers.

    Args:
        log_path: Optional file receiving a copy of the log.
        level: Logging level of the package logger and its handlers.
        append_mode: If True, append to an existing log file; if False, overwrite.
        max_msg_sz: Maximum size for log messages in characters.

    Returns:
        The configured ``spherical_blue_noise`` logger.
    """
    logger: logging.Logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = SizeLimitedFormatter(LOG_FORMAT, max_msg_sz=max_msg_sz)

    stream_handler: logging.StreamHandler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_path:
        fh: logging.FileHandler = logging.FileHandler(
            log_path, mode="a" if append_mode else "w", encoding="utf-8"
        )
        fh.setLevel(level)
        fh.setFormatter(formatter)
        logger.addHandler(fh)

    return logger
