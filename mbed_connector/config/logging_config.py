"""Rich-handler logging preset."""
import logging
from typing import Optional

from rich.logging import RichHandler

from .app_config import settings

def configure(level: Optional[str] = None):
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper()),
        format="%(asctime)s │ %(name)-28s │ %(levelname)-8s │ %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(rich_tracebacks=True, markup=False)],
    )
