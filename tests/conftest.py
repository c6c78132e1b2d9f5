"""
Shared fixtures: fresh stores, a pipeline over a temporary source directory,
and a clean process-wide registry around every test.
"""

import pytest

from film_catalog.catalog import AccountStore, ContentCatalog, PeopleDirectory
from film_catalog.config import Settings
from film_catalog.data_loader import IngestionPipeline, SourceLocator
from film_catalog.registry import shutdown_registry


@pytest.fixture(autouse=True)
def clean_registry():
	shutdown_registry()
	yield
	shutdown_registry()


@pytest.fixture
def settings():
	return Settings(data_dir=None, episodes_per_season=3, use_fallback_samples=True)


@pytest.fixture
def catalog():
	return ContentCatalog()


@pytest.fixture
def people():
	return PeopleDirectory()


@pytest.fixture
def accounts():
	return AccountStore()


@pytest.fixture
def source_dir(tmp_path):
	"""Empty directory used as the only search location."""
	directory = tmp_path / 'sources'
	directory.mkdir()
	return directory


@pytest.fixture
def write_source(source_dir):
	def write(filename, lines):
		path = source_dir / filename
		path.write_text('\n'.join(lines) + '\n', encoding='utf-8')
		return path
	return write


@pytest.fixture
def pipeline(catalog, people, accounts, source_dir, settings):
	return IngestionPipeline(catalog, people, accounts, locator=SourceLocator([source_dir]), settings=settings)
