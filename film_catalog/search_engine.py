"""
Search engine module.
Turns a QueryDescriptor into independent predicates and returns the content satisfying all of them.
"""

from typing import Callable, List, Optional, Set, Tuple  # type annotations for clarity

# Import loguru for console logging
from loguru import logger  # simple structured logger

from .catalog import ContentCatalog
from .models import Content, ContentItem, ContentKind, QueryDescriptor
from .query_parser import QueryParser  # natural-language front end

Predicate = Callable[[Content], bool]


def _fold(text: Optional[str]) -> str:
	return ' '.join((text or '').split()).casefold()


def text_predicate(needle: str) -> Predicate:
	"""Case-insensitive substring match on the title."""
	folded = _fold(needle)
	return lambda item: folded in _fold(item.title)


def genre_predicate(genre) -> Predicate:
	return lambda item: genre in (item.genres or ())


def year_predicate(min_year: Optional[int], max_year: Optional[int]) -> Predicate:
	"""Effective year inside [min_year, max_year]; an open bound is unbounded. No year never matches."""
	low = min_year if min_year is not None else float('-inf')
	high = max_year if max_year is not None else float('inf')

	def matches(item: Content) -> bool:
		year = item.effective_year
		return year is not None and low <= year <= high

	return matches


def rating_predicate(min_rating: Optional[float], max_rating: Optional[float]) -> Predicate:
	"""Rating inside [min_rating, max_rating]; unrated items never match."""
	low = min_rating if min_rating is not None else float('-inf')
	high = max_rating if max_rating is not None else float('inf')
	return lambda item: item.rating is not None and low <= item.rating <= high


def build_predicates(descriptor: QueryDescriptor) -> List[Tuple[str, Predicate]]:
	"""One named predicate per active constraint. An empty list matches everything."""
	predicates: List[Tuple[str, Predicate]] = []

	# The explicit title wins over the free-text query
	needle = descriptor.title if descriptor.title and descriptor.title.strip() else descriptor.query
	if needle and needle.strip():
		predicates.append(('text', text_predicate(needle)))
	if descriptor.genre is not None:
		predicates.append(('genre', genre_predicate(descriptor.genre)))
	if descriptor.min_year is not None or descriptor.max_year is not None:
		predicates.append(('year', year_predicate(descriptor.min_year, descriptor.max_year)))
	if descriptor.min_rating is not None or descriptor.max_rating is not None:
		predicates.append(('rating', rating_predicate(descriptor.min_rating, descriptor.max_rating)))
	return predicates


class SearchEngine:
	"""
	Read-only search over a ContentCatalog.
	Each store is read under its own read lock; no lock spans both stores.
	"""

	def __init__(self, catalog: ContentCatalog, parser: Optional[QueryParser] = None):
		self.catalog = catalog  # stores to search
		self.parser = parser or QueryParser()  # free text -> descriptor

	def candidates(self, kind: ContentKind = ContentKind.ANY) -> List[ContentItem]:
		"""Base candidate set, movies before series, de-duplicated by (store, id)."""
		seen: Set[Tuple[ContentKind, int]] = set()
		items: List[ContentItem] = []
		for store_kind, store in self.catalog.stores(kind):
			for item in store.get_all():
				key = (store_kind, item.id)
				if key in seen:
					continue
				seen.add(key)
				items.append(item)
		return items

	def search(self, descriptor: Optional[QueryDescriptor] = None) -> List[ContentItem]:
		"""Items matching every active constraint of `descriptor`, in candidate order."""
		descriptor = descriptor or QueryDescriptor()
		candidates = self.candidates(descriptor.kind)
		predicates = build_predicates(descriptor)
		logger.debug(
			f"[Engine] Searching {len(candidates)} candidates | kind={descriptor.kind.value} "
			f"| predicates={[name for name, _ in predicates]}"
		)
		if not predicates:
			return candidates

		results: List[ContentItem] = []
		for item in candidates:
			failed = next((name for name, predicate in predicates if not predicate(item)), None)
			if failed is not None:
				logger.trace(f"[Engine] Filtered out by {failed} | {item.title} ({item.id})")
				continue
			results.append(item)
		logger.info(f"[Engine] {len(results)} of {len(candidates)} candidates matched")
		return results

	def parse_query(self, text: str) -> QueryDescriptor:
		"""Parse a natural-language query into a descriptor."""
		logger.debug(f"[Engine] Parsing query: {text}")
		return self.parser.parse(text)

	def search_text(self, text: str) -> List[ContentItem]:
		"""Parse then search. Raises ValueError for an empty query."""
		return self.search(self.parse_query(text))
