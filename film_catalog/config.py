"""
Runtime settings and logging setup.

Settings come from the environment (prefix FILM_CATALOG_) or an optional .env file:

    FILM_CATALOG_DATA_DIR=/srv/catalog/data
    FILM_CATALOG_LOG_LEVEL=DEBUG
"""

import sys
from functools import lru_cache
from pathlib import Path
from typing import Optional

from loguru import logger  # console logger
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	model_config = SettingsConfigDict(
		env_prefix='FILM_CATALOG_',
		env_file='.env',
		env_file_encoding='utf-8',
		case_sensitive=False,
		extra='ignore',
	)

	data_dir: Optional[Path] = None  # searched before the built-in locations
	log_level: str = 'INFO'
	episodes_per_season: int = Field(default=10, ge=0)  # generated for ingested series
	use_fallback_samples: bool = True  # fill stores whose source yielded nothing


@lru_cache(maxsize=1)
def get_settings() -> Settings:
	return Settings()


_sink_id: Optional[int] = None


def configure_logging(level: str = 'INFO') -> None:
	"""Replace loguru's default sink with one stderr sink at `level`. Safe to call repeatedly."""
	global _sink_id
	if _sink_id is None:
		logger.remove()
	else:
		logger.remove(_sink_id)
	_sink_id = logger.add(
		sys.stderr,
		level=level.upper(),
		format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
	)
