"""
Data models for the Film Catalog.
Defines the enumerations and record types shared by the stores, the loader and the search engine.
"""

# Dataclasses give us record-like classes without boilerplate
from dataclasses import dataclass, field  # auto-generates __init__, __repr__, etc.
from datetime import date, datetime  # birth dates, release dates, rating timestamps
from enum import Enum  # closed value sets (genres, nationalities, kinds)
# Typing helpers for precise and self-documenting types
from typing import ClassVar, List, Optional, Protocol, Set, Union, runtime_checkable


class Genre(Enum):
	"""Content genres with their human-readable labels."""
	ACTION = "Action"
	COMEDY = "Comedy"
	DRAMA = "Drama"
	HORROR = "Horror"
	THRILLER = "Thriller"
	ROMANCE = "Romance"
	SCI_FI = "Science Fiction"
	FANTASY = "Fantasy"
	DOCUMENTARY = "Documentary"
	ANIMATION = "Animation"
	CRIME = "Crime"
	MYSTERY = "Mystery"
	ADVENTURE = "Adventure"
	BIOGRAPHY = "Biography"
	MUSICAL = "Musical"
	WESTERN = "Western"
	WAR = "War"
	FAMILY = "Family"
	SPORT = "Sport"
	HISTORY = "History"

	@property
	def label(self) -> str:
		return self.value


# Common phrasings -> canonical genre
GENRE_SYNONYMS = {
	'sci-fi': Genre.SCI_FI,
	'sci fi': Genre.SCI_FI,
	'scifi': Genre.SCI_FI,
	'sci-fy': Genre.SCI_FI,
	'science-fiction': Genre.SCI_FI,
	'science fiction': Genre.SCI_FI,
	'funny': Genre.COMEDY,
	'romantic': Genre.ROMANCE,
	'animated': Genre.ANIMATION,
	'biographical': Genre.BIOGRAPHY,
	'biopic': Genre.BIOGRAPHY,
	'sports': Genre.SPORT,
	'historical': Genre.HISTORY,
	'scary': Genre.HORROR,
}


def parse_genre(raw: str) -> Optional[Genre]:
	"""
	Map a raw genre string to a Genre.
	Accepts enum names (SCI_FI), labels (Science Fiction) and the synonyms above.
	Returns None for anything unrecognised.
	"""
	if not raw or not raw.strip():
		return None
	text = raw.strip().lower()
	if text in GENRE_SYNONYMS:
		return GENRE_SYNONYMS[text]
	name = text.upper().replace('-', '_').replace(' ', '_').replace('&', 'AND')
	for genre in Genre:
		if genre.name == name or genre.value.lower() == text:
			return genre
	# "Drama/Romance" style compound values keep their leading genre
	if name.startswith('DRAMA'):
		return Genre.DRAMA
	if name.startswith('COMEDY'):
		return Genre.COMEDY
	return None


class Ethnicity(Enum):
	"""Ethnicity / nationality labels used for people."""
	AFRICAN = "African"
	ARAB = "Arab"
	ASIAN = "Asian"
	CAUCASIAN = "Caucasian"
	HISPANIC = "Hispanic"
	INDIAN = "Indian"
	INDIGENOUS_AMERICAN = "Indigenous American"
	INDIGENOUS_AUSTRALIAN = "Indigenous Australian"
	PACIFIC_ISLANDER = "Pacific Islander"
	AMERICAN = "American"
	AUSTRALIAN = "Australian"
	BRITISH = "British"
	CANADIAN = "Canadian"
	CHINESE = "Chinese"
	FRENCH = "French"
	GERMAN = "German"
	IRISH = "Irish"
	ITALIAN = "Italian"
	JAPANESE = "Japanese"
	KOREAN = "Korean"
	MALAYSIAN = "Malaysian"
	MEXICAN = "Mexican"
	NEW_ZEALAND = "New Zealander"
	RUSSIAN = "Russian"
	SCOTTISH = "Scottish"
	SPANISH = "Spanish"
	SWEDISH = "Swedish"
	MIXED = "Mixed"
	OTHER = "Other"
	UNKNOWN = "Unknown"

	@classmethod
	def from_label(cls, raw: Optional[str]) -> 'Ethnicity':
		"""
		Tolerant lookup: exact label, a few aliases, enum-name style, then partial matches.
		Never raises; unmatched input is UNKNOWN.
		"""
		if not raw or not raw.strip() or raw.strip().lower() == 'n/a':
			return cls.UNKNOWN
		text = raw.strip().lower()
		for member in cls:
			if member.value.lower() == text:
				return member
		aliases = {
			'aus': cls.AUSTRALIAN,
			'nz': cls.NEW_ZEALAND,
			'new zealand': cls.NEW_ZEALAND,
			'scot': cls.SCOTTISH,
			'scotland': cls.SCOTTISH,
			'malay': cls.MALAYSIAN,
			'eire': cls.IRISH,
			'english': cls.BRITISH,
			'uk': cls.BRITISH,
			'usa': cls.AMERICAN,
			'us': cls.AMERICAN,
		}
		if text in aliases:
			return aliases[text]
		name = text.upper().replace('-', '_').replace(' ', '_')
		if name in cls.__members__:
			return cls[name]
		for member in cls:
			label = member.value.lower()
			if label in text or text in label:
				return member
		return cls.UNKNOWN


class Gender(Enum):
	MALE = "M"
	FEMALE = "F"
	NON_BINARY = "N"
	UNKNOWN = "U"

	@classmethod
	def from_code(cls, raw: Optional[str]) -> 'Gender':
		"""First letter decides; anything unrecognised is UNKNOWN."""
		if not raw or not raw.strip():
			return cls.UNKNOWN
		code = raw.strip()[0].upper()
		for member in cls:
			if member.value == code:
				return member
		return cls.UNKNOWN


class ContentKind(Enum):
	MOVIE = "movie"
	SERIES = "series"
	ANY = "any"


@runtime_checkable
class HasNationality(Protocol):
	"""Capability: the record exposes a nationality."""
	nationality: Ethnicity


@dataclass
class Person:
	"""
	A performer or director. `id` is assigned by the owning store (0 = not yet saved).
	"""
	first_name: str  # given name
	last_name: str = ''  # family name (may be empty for mononyms)
	birth_date: Optional[date] = None  # optional birth date
	gender: Gender = Gender.UNKNOWN  # enumerated, unknown allowed
	nationality: Ethnicity = Ethnicity.UNKNOWN  # enumerated nationality / ethnicity
	notable_works: List[str] = field(default_factory=list)  # ordered titles
	id: int = 0  # store-assigned identifier

	@property
	def full_name(self) -> str:
		return f"{self.first_name} {self.last_name}".strip()

	def identity(self):
		"""Key used to de-duplicate people: the id once saved, the folded name before that."""
		if self.id:
			return ('id', self.id)
		return ('name', self.first_name.strip().casefold(), self.last_name.strip().casefold())


@dataclass
class Actor(Person):
	biography: Optional[str] = None


@dataclass
class Director(Person):
	best_works: List[str] = field(default_factory=list)  # free-text list of best works


@dataclass
class Episode:
	number: int  # 1-based position within the season
	title: str = ''
	release_date: Optional[date] = None
	cast: List[Actor] = field(default_factory=list)  # guest performers


@dataclass
class Season:
	number: int  # 1-based season number
	title: str = ''
	episodes: List[Episode] = field(default_factory=list)


@dataclass
class Content:
	"""
	Common fields of every catalog entry.
	Use Movie or Series; Content itself is never stored.
	"""
	kind: ClassVar[ContentKind] = ContentKind.ANY

	title: str  # required, unique per store (case-insensitive)
	release_year: Optional[int] = None  # start year for series
	genres: Set[Genre] = field(default_factory=set)
	rating: Optional[float] = None  # 0.0-10.0
	director: Optional[str] = None  # director name as text
	release_date: Optional[date] = None  # used when release_year is unset
	awards: List[str] = field(default_factory=list)  # overlay data
	box_office: Optional[str] = None  # overlay data
	nominations: Optional[str] = None  # overlay data
	id: int = 0  # store-assigned identifier

	@property
	def effective_year(self) -> Optional[int]:
		"""The release year, or the year of the release date when no year is stored."""
		if self.release_year:
			return self.release_year
		if self.release_date is not None:
			return self.release_date.year
		return None


@dataclass
class Movie(Content):
	kind: ClassVar[ContentKind] = ContentKind.MOVIE

	duration_minutes: int = 0
	cast: List[Actor] = field(default_factory=list)  # ordered performers


@dataclass
class Series(Content):
	kind: ClassVar[ContentKind] = ContentKind.SERIES

	seasons: List[Season] = field(default_factory=list)
	end_year: Optional[int] = None  # None = ongoing
	cast: List[Actor] = field(default_factory=list)  # main cast

	@property
	def ongoing(self) -> bool:
		return self.end_year is None


ContentItem = Union[Movie, Series]


def kind_of(content: ContentItem) -> ContentKind:
	"""
	Closed dispatch over the content variants.
	Every per-kind decision goes through here so a new kind fails loudly instead of falling through.
	"""
	if isinstance(content, Movie):
		return ContentKind.MOVIE
	if isinstance(content, Series):
		return ContentKind.SERIES
	raise TypeError(f"Unsupported content type: {type(content).__name__}")


@dataclass
class Account:
	username: str  # unique
	email: str  # unique, compared case-insensitively
	password_hash: str = ''  # opaque, stored verbatim
	display_name: str = ''
	gender: Gender = Gender.UNKNOWN
	birth_date: Optional[date] = None
	country: Optional[str] = None
	id: int = 0


@dataclass
class Rating:
	"""
	One account's score for one content item.
	References are weak: the ids are looked up lazily and may dangle.
	"""
	account_id: int
	content_id: int
	score: float  # 0.0-10.0
	content_kind: ContentKind = ContentKind.MOVIE
	review: Optional[str] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None
	id: int = 0


@dataclass
class WatchlistEntry:
	"""
	A content item an account has put on its watchlist.
	References are weak, as for Rating.
	"""
	account_id: int
	content_id: int
	content_kind: ContentKind = ContentKind.MOVIE
	watched: bool = False
	notes: Optional[str] = None
	added_at: Optional[datetime] = None  # kept across updates
	id: int = 0


@dataclass
class QueryDescriptor:
	"""
	What a caller wants from a search. Every field is optional; an unset field adds no constraint.
	"""
	query: Optional[str] = None  # free text, matched against titles when `title` is unset
	title: Optional[str] = None  # explicit title substring
	kind: ContentKind = ContentKind.ANY
	min_year: Optional[int] = None
	max_year: Optional[int] = None
	min_rating: Optional[float] = None
	max_rating: Optional[float] = None
	genre: Optional[Genre] = None
