"""Environment-driven settings and logging setup."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_DATA_DIR = Path(__file__).parent / "data"
LOCALES = ["id_ID", "en_US", "it_IT"]


@dataclass
class Settings:
    data_dir: Path
    locale: str = "id_ID"
    currency: str = "IDR"
    log_level: str = "INFO"


def get_settings() -> Settings:
    return Settings(
        data_dir=Path(os.environ.get("FOODCOST_DATA_DIR") or DEFAULT_DATA_DIR),
        locale=os.environ.get("FOODCOST_LOCALE", "id_ID"),
        currency=os.environ.get("FOODCOST_CURRENCY", "IDR"),
        log_level=os.environ.get("FOODCOST_LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Install a root handler once; later calls only adjust the level."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(level)
