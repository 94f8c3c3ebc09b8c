# Copyright 2026 Systemique Contributors
# SPDX-License-Identifier: Apache-2.0

"""Logger setup for the ``systemique`` package."""

import logging
import sys

# ###############
# Public Interface
# ###############

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: int | str = logging.WARNING) -> logging.Logger:
    """Configure the ``systemique`` logger to write to stderr.

    Existing handlers are replaced so repeated calls do not duplicate output.
    """
    logger = logging.getLogger("systemique")
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    return logger
