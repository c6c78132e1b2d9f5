"""
Registry module.
Builds every store once and hands references to the components that need them.

Construction is two-phase: `Registry(...)` creates the stores with no cross-references,
then `wire()` builds the pipeline, parser and search engine on top of them.
"""

import threading  # guards the process-wide binding
from typing import Callable, Optional

from loguru import logger  # console logger

from .catalog import AccountStore, ContentCatalog, PeopleDirectory, RatingStore, WatchlistStore
from .config import Settings, get_settings
from .data_loader import IngestionPipeline, IngestionReport, SourceLocator
from .query_parser import QueryParser
from .search_engine import SearchEngine


class Registry:
	"""One set of stores and the consumers wired to them."""

	def __init__(self, settings: Optional[Settings] = None, locator: Optional[SourceLocator] = None):
		self.settings = settings or get_settings()
		self._locator = locator

		# Phase 1: stores only
		self.catalog = ContentCatalog()
		self.people = PeopleDirectory()
		self.accounts = AccountStore()
		self.ratings = RatingStore()
		self.watchlists = WatchlistStore()

		self.pipeline: Optional[IngestionPipeline] = None
		self.parser: Optional[QueryParser] = None
		self.engine: Optional[SearchEngine] = None

	@property
	def wired(self) -> bool:
		return self.engine is not None

	def wire(self) -> 'Registry':
		"""Phase 2: build consumers from the already constructed stores. Idempotent."""
		if self.wired:
			return self
		self.pipeline = IngestionPipeline(
			self.catalog, self.people, self.accounts, locator=self._locator, settings=self.settings,
		)
		self.parser = QueryParser()
		self.engine = SearchEngine(self.catalog, parser=self.parser)
		logger.debug("[Registry] Wired pipeline, parser and search engine")
		return self

	def load(self) -> IngestionReport:
		"""Run ingestion once into the stores (wires first if needed)."""
		self.wire()
		return self.pipeline.run_all()

	@property
	def last_report(self) -> Optional[IngestionReport]:
		return self.pipeline.last_report if self.pipeline is not None else None

	def clear(self) -> None:
		"""Empty every store and drop the consumers."""
		for store in (
			self.catalog.movies, self.catalog.series,
			self.people.actors, self.people.directors,
			self.accounts, self.ratings, self.watchlists,
		):
			store.clear()
		self.pipeline = self.parser = self.engine = None
		logger.debug("[Registry] Cleared")


# ---- process-wide binding ----------------------------------------------------

_lock = threading.Lock()
_registry: Optional[Registry] = None


def init_registry(factory: Optional[Callable[[], Registry]] = None) -> Registry:
	"""
	Bind the process-wide registry. The first caller wins; later calls return the
	existing registry and ignore their factory.
	"""
	global _registry
	with _lock:
		if _registry is None:
			registry = factory() if factory is not None else Registry()
			_registry = registry.wire()
			logger.info("[Registry] Initialized")
		return _registry


def get_registry() -> Registry:
	"""The bound registry, initialised with defaults on first use."""
	if _registry is not None:
		return _registry
	return init_registry()


def shutdown_registry() -> None:
	"""Clear and unbind the process-wide registry. Safe to call repeatedly."""
	global _registry
	with _lock:
		if _registry is None:
			return
		_registry.clear()
		_registry = None
		logger.info("[Registry] Shut down")
