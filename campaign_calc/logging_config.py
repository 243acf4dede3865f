"""
Campaign Calc — Logging bootstrap.
Modules log through `logging.getLogger(__name__)`; this only sets the root handler.
"""

from __future__ import annotations

import logging
from typing import Optional

from campaign_calc.config import Settings, get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level_number, format=LOG_FORMAT)
    logging.getLogger("campaign_calc").setLevel(
        logging.DEBUG if settings.DEBUG else settings.log_level_number
    )
