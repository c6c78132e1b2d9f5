"""
Entity-specific stores built on EntityStore.
ContentCatalog groups the movie and series stores, PeopleDirectory the actor and director stores,
AccountStore, RatingStore and WatchlistStore stand on their own.
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple, Type

from loguru import logger  # console logger

from .errors import DuplicateEntryError, InvalidEntityError
from .models import (
	Account,
	Actor,
	Content,
	ContentItem,
	ContentKind,
	Director,
	Episode,
	Ethnicity,
	HasNationality,
	Movie,
	Person,
	Rating,
	Series,
	WatchlistEntry,
	kind_of,
)
from .store import EntityStore, UniqueKey


def _fold(text: Optional[str]) -> str:
	return ' '.join((text or '').split()).casefold()


def _pair(account_id: int, kind: ContentKind, content_id: int) -> str:
	return f"{account_id}/{kind.value}/{content_id}"


def split_full_name(full_name: str) -> Tuple[str, str]:
	"""'Millie Bobby Brown' -> ('Millie', 'Bobby Brown')."""
	parts = full_name.strip().split(None, 1)
	if not parts:
		return '', ''
	return parts[0], parts[1] if len(parts) > 1 else ''


# ---- content -----------------------------------------------------------------


class ContentStore(EntityStore[Content]):
	"""Movies or series; the title is unique within one store, case-insensitively."""

	entity_name = 'content'

	def __init__(self, name: Optional[str] = None, content_type: Type[Content] = Content):
		super().__init__(name)
		self.content_type = content_type

	def unique_keys(self, entity: Content) -> List[UniqueKey]:
		return [('title', _fold(entity.title))]

	def validate(self, entity: Content) -> None:
		if not isinstance(entity, self.content_type):
			raise InvalidEntityError(self.name, f"expected {self.content_type.__name__}, got {type(entity).__name__}")
		if not entity.title or not entity.title.strip():
			raise InvalidEntityError(self.name, "title is required")
		if entity.rating is not None and not 0.0 <= entity.rating <= 10.0:
			raise InvalidEntityError(self.name, f"rating {entity.rating} outside 0.0-10.0")

	def find_by_title(self, substring: Optional[str]) -> List[Content]:
		"""Case-insensitive substring match over titles."""
		needle = _fold(substring)
		if not needle:
			return []
		return self.find(lambda c: needle in _fold(c.title))

	def find_by_exact_title(self, title: str) -> Optional[Content]:
		return self._find_by_key(('title', _fold(title)))

	def find_by_title_and_year(self, title: str, year: int) -> Optional[Content]:
		found = self.find_by_exact_title(title)
		if found is not None and found.effective_year == year:
			return found
		return None


class ContentCatalog:
	"""
	The movie store and the series store, plus accessors that need to know about both.
	"""

	def __init__(self, movies: Optional[ContentStore] = None, series: Optional[ContentStore] = None):
		self.movies = movies or ContentStore('movies', Movie)
		self.series = series or ContentStore('series', Series)

	def store_for(self, kind: ContentKind) -> ContentStore:
		if kind is ContentKind.MOVIE:
			return self.movies
		if kind is ContentKind.SERIES:
			return self.series
		raise ValueError(f"No single store for content kind '{kind.value}'")

	def stores(self, kind: ContentKind = ContentKind.ANY) -> List[Tuple[ContentKind, ContentStore]]:
		"""(kind, store) pairs selected by `kind`, movies first."""
		if kind is ContentKind.ANY:
			return [(ContentKind.MOVIE, self.movies), (ContentKind.SERIES, self.series)]
		return [(kind, self.store_for(kind))]

	# ---- CRUD passthrough ----

	def save(self, content: ContentItem) -> ContentItem:
		return self.store_for(kind_of(content)).save(content)

	def get(self, kind: ContentKind, content_id: int) -> Optional[ContentItem]:
		return self.store_for(kind).get_by_id(content_id)

	def delete(self, kind: ContentKind, content_id: int) -> bool:
		return self.store_for(kind).delete(content_id)

	def get_all(self, kind: ContentKind = ContentKind.ANY) -> List[ContentItem]:
		items: List[ContentItem] = []
		for _, store in self.stores(kind):
			items.extend(store.get_all())
		return items

	def count(self, kind: ContentKind = ContentKind.ANY) -> int:
		return sum(store.count() for _, store in self.stores(kind))

	# ---- lookups ----

	def find_by_title(self, substring: Optional[str], kind: ContentKind = ContentKind.ANY) -> List[ContentItem]:
		items: List[ContentItem] = []
		for _, store in self.stores(kind):
			items.extend(store.find_by_title(substring))
		return items

	def find_by_title_and_year(self, title: str, year: int, kind: ContentKind) -> Optional[ContentItem]:
		return self.store_for(kind).find_by_title_and_year(title, year)

	# ---- series accessors ----

	@staticmethod
	def total_episodes(series: Series) -> int:
		"""Sum of episodes over seasons; a season without episodes counts as zero."""
		return sum(len(season.episodes or []) for season in (series.seasons or []))

	@staticmethod
	def performers_of(series: Series) -> List[Actor]:
		"""Main cast followed by every episode performer, de-duplicated by identity, first seen wins."""
		seen = set()
		performers: List[Actor] = []
		candidates: List[Actor] = list(series.cast or [])
		for season in series.seasons or []:
			for episode in season.episodes or []:
				candidates.extend(episode.cast or [])
		for person in candidates:
			key = person.identity()
			if key not in seen:
				seen.add(key)
				performers.append(person)
		return performers

	def episodes(self, series_id: int) -> List[Episode]:
		series = self.series.get_by_id(series_id)
		if series is None:
			return []
		return [episode for season in series.seasons for episode in (season.episodes or [])]

	def episode_count(self, series_id: int) -> int:
		series = self.series.get_by_id(series_id)
		return self.total_episodes(series) if series is not None else 0

	def series_performers(self, series_id: int) -> List[Actor]:
		series = self.series.get_by_id(series_id)
		return self.performers_of(series) if series is not None else []

	def filmography(self, person: Person) -> List[ContentItem]:
		"""Every movie or series whose cast includes the person or whose director is the person."""
		identity = person.identity()
		name = _fold(person.full_name)
		is_actor = isinstance(person, Actor)

		def involved(content: Content) -> bool:
			if name and _fold(content.director) == name:
				return True
			if kind_of(content) is ContentKind.SERIES:
				people = self.performers_of(content)
			else:
				people = content.cast or []
			# ids are per store, so an id match only counts for actors
			return any(
				_fold(p.full_name) == name or (is_actor and p.identity() == identity)
				for p in people
			)

		return self.movies.find(involved) + self.series.find(involved)


# ---- people ------------------------------------------------------------------


class PersonStore(EntityStore[Person]):
	"""
	Actors or directors. Two people may share a name; the same name with the same
	birth date (or both unknown) is a duplicate.
	"""

	entity_name = 'person'

	def __init__(self, name: Optional[str] = None, person_type: Type[Person] = Person):
		super().__init__(name)
		self.person_type = person_type

	def unique_keys(self, entity: Person) -> List[UniqueKey]:
		born = entity.birth_date.isoformat() if entity.birth_date else '?'
		return [('name and birth date', f"{_fold(entity.full_name)} ({born})")]

	def validate(self, entity: Person) -> None:
		if not isinstance(entity, self.person_type):
			raise InvalidEntityError(self.name, f"expected {self.person_type.__name__}, got {type(entity).__name__}")
		if not entity.first_name or not entity.first_name.strip():
			raise InvalidEntityError(self.name, "first name is required")

	def find_by_full_name(self, first_name: str, last_name: str) -> Optional[Person]:
		"""First stored person with this name, case-insensitively."""
		full_name = _fold(f"{first_name or ''} {last_name or ''}")
		return self.find_first(lambda p: _fold(p.full_name) == full_name)

	def find_by_name(self, text: Optional[str]) -> List[Person]:
		needle = _fold(text)
		if not needle:
			return []
		return self.find(lambda p: needle in _fold(p.full_name))


class PeopleDirectory:
	def __init__(self, actors: Optional[PersonStore] = None, directors: Optional[PersonStore] = None):
		self.actors = actors or PersonStore('actors', Actor)
		self.directors = directors or PersonStore('directors', Director)

	def find_by_full_name(self, first_name: str, last_name: str) -> Optional[Person]:
		"""Actors are checked before directors."""
		return (
			self.actors.find_by_full_name(first_name, last_name)
			or self.directors.find_by_full_name(first_name, last_name)
		)

	def resolve_actor(self, full_name: str) -> Optional[Actor]:
		"""
		Return the stored actor with this name, creating it when missing.
		Blank names resolve to None.
		"""
		first_name, last_name = split_full_name(full_name)
		if not first_name:
			return None
		existing = self.actors.find_by_full_name(first_name, last_name)
		if existing is not None:
			return existing
		try:
			created = self.actors.save(Actor(first_name=first_name, last_name=last_name))
			logger.debug(f"[People] Created actor '{created.full_name}' id={created.id}")
			return created
		except DuplicateEntryError:
			# Someone else inserted the same name in between
			return self.actors.find_by_full_name(first_name, last_name)

	def by_nationality(self, nationality: Ethnicity) -> List[Person]:
		def matches(person: Person) -> bool:
			return isinstance(person, HasNationality) and person.nationality is nationality

		return self.actors.find(matches) + self.directors.find(matches)

	def count(self) -> int:
		return self.actors.count() + self.directors.count()


# ---- accounts ----------------------------------------------------------------


class AccountStore(EntityStore[Account]):
	"""Accounts; username and email are both unique, case-insensitively."""

	entity_name = 'account'

	def __init__(self, name: Optional[str] = 'accounts'):
		super().__init__(name)

	def unique_keys(self, entity: Account) -> List[UniqueKey]:
		return [('username', _fold(entity.username)), ('email', _fold(entity.email))]

	def validate(self, entity: Account) -> None:
		if not entity.username or not entity.username.strip():
			raise InvalidEntityError(self.name, "username is required")
		if not entity.email or '@' not in entity.email:
			raise InvalidEntityError(self.name, "a valid email is required")

	def find_by_username(self, username: Optional[str]) -> Optional[Account]:
		"""Exact match."""
		if not username:
			return None
		return self.find_first(lambda a: a.username == username)

	def find_by_email(self, email: Optional[str]) -> Optional[Account]:
		"""Case-insensitive match."""
		if not email:
			return None
		return self._find_by_key(('email', _fold(email)))


# ---- ratings -----------------------------------------------------------------


class RatingStore(EntityStore[Rating]):
	"""
	At most one rating per (account, content). Ids in a rating are weak references:
	nothing here checks that the account or the content exists.
	"""

	entity_name = 'rating'

	def __init__(self, name: Optional[str] = 'ratings'):
		super().__init__(name)

	def unique_keys(self, entity: Rating) -> List[UniqueKey]:
		return [('account/content', _pair(entity.account_id, entity.content_kind, entity.content_id))]

	def validate(self, entity: Rating) -> None:
		if entity.content_kind is ContentKind.ANY:
			raise InvalidEntityError(self.name, "content kind must be movie or series")
		if entity.account_id <= 0 or entity.content_id <= 0:
			raise InvalidEntityError(self.name, "account and content ids must be positive")
		if entity.score is None or not 0.0 <= float(entity.score) <= 10.0:
			raise InvalidEntityError(self.name, f"score {entity.score} outside 0.0-10.0")

	def _before_store(self, record: Rating, previous: Optional[Rating]) -> None:
		now = datetime.now(timezone.utc)
		record.created_at = previous.created_at if previous is not None else (record.created_at or now)
		record.updated_at = now

	def find_rating(self, account_id: int, content_id: int, kind: ContentKind = ContentKind.MOVIE) -> Optional[Rating]:
		return self._find_by_key(('account/content', _pair(account_id, kind, content_id)))

	def rate(
		self,
		account_id: int,
		content_id: int,
		score: float,
		kind: ContentKind = ContentKind.MOVIE,
		review: Optional[str] = None,
	) -> Rating:
		"""Create the account's rating for the content, or update the one it already has."""
		existing = self.find_rating(account_id, content_id, kind)
		if existing is None:
			try:
				return self.save(Rating(account_id=account_id, content_id=content_id, score=score, content_kind=kind, review=review))
			except DuplicateEntryError:
				existing = self.find_rating(account_id, content_id, kind)
				if existing is None:
					raise
		existing.score = score
		if review is not None:
			existing.review = review
		return self.save(existing)

	def for_account(self, account_id: int) -> List[Rating]:
		return self.find(lambda r: r.account_id == account_id)

	def for_content(self, content_id: int, kind: ContentKind = ContentKind.MOVIE) -> List[Rating]:
		return self.find(lambda r: r.content_id == content_id and r.content_kind is kind)

	def average_for(self, content_id: int, kind: ContentKind = ContentKind.MOVIE) -> Optional[float]:
		scores = [r.score for r in self.for_content(content_id, kind)]
		if not scores:
			return None
		return round(sum(scores) / len(scores), 2)


# ---- watchlists --------------------------------------------------------------


class WatchlistStore(EntityStore[WatchlistEntry]):
	"""
	Per-account watchlists. An account lists a given content item at most once;
	like ratings, the ids are weak references.
	"""

	entity_name = 'watchlist entry'

	def __init__(self, name: Optional[str] = 'watchlists'):
		super().__init__(name)

	def unique_keys(self, entity: WatchlistEntry) -> List[UniqueKey]:
		return [('account/content', _pair(entity.account_id, entity.content_kind, entity.content_id))]

	def validate(self, entity: WatchlistEntry) -> None:
		if entity.content_kind is ContentKind.ANY:
			raise InvalidEntityError(self.name, "content kind must be movie or series")
		if entity.account_id <= 0 or entity.content_id <= 0:
			raise InvalidEntityError(self.name, "account and content ids must be positive")

	def _before_store(self, record: WatchlistEntry, previous: Optional[WatchlistEntry]) -> None:
		if previous is not None:
			record.added_at = previous.added_at
		elif record.added_at is None:
			record.added_at = datetime.now(timezone.utc)

	def find_entry(self, account_id: int, content_id: int, kind: ContentKind = ContentKind.MOVIE) -> Optional[WatchlistEntry]:
		return self._find_by_key(('account/content', _pair(account_id, kind, content_id)))

	def add(
		self,
		account_id: int,
		content_id: int,
		kind: ContentKind = ContentKind.MOVIE,
		notes: Optional[str] = None,
	) -> WatchlistEntry:
		"""Raises DuplicateEntryError when the content is already on the account's list."""
		entry = self.save(WatchlistEntry(account_id=account_id, content_id=content_id, content_kind=kind, notes=notes))
		logger.debug(f"[Watchlist] Account {account_id} added {kind.value} {content_id}")
		return entry

	def remove(self, account_id: int, content_id: int, kind: ContentKind = ContentKind.MOVIE) -> bool:
		entry = self.find_entry(account_id, content_id, kind)
		if entry is None:
			return False
		return self.delete(entry.id)

	def contains(self, account_id: int, content_id: int, kind: ContentKind = ContentKind.MOVIE) -> bool:
		return self.find_entry(account_id, content_id, kind) is not None

	def mark_watched(
		self,
		account_id: int,
		content_id: int,
		kind: ContentKind = ContentKind.MOVIE,
		watched: bool = True,
	) -> Optional[WatchlistEntry]:
		"""None when the content is not on the list."""
		entry = self.find_entry(account_id, content_id, kind)
		if entry is None:
			return None
		entry.watched = watched
		return self.save(entry)

	def for_account(self, account_id: int) -> List[WatchlistEntry]:
		"""Most recently added first."""
		entries = self.find(lambda e: e.account_id == account_id)
		return sorted(entries, key=lambda e: (e.added_at, e.id), reverse=True)
