from __future__ import annotations
import logging
from .config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_configured = False

def setup_logging(level: str | None = None) -> None:
    global _configured
    if _configured:
        return
    lvl = getattr(logging, (level or settings.log_level), logging.INFO)
    logging.basicConfig(level=lvl, format=LOG_FORMAT)
    # Lambda installs its own root handler, so basicConfig is a no-op there
    logging.getLogger().setLevel(lvl)
    # botocore is chatty at INFO
    logging.getLogger("botocore").setLevel(logging.WARNING)
    _configured = True
