"""
Data loading module.
Populates the stores from delimited text sources, one record per line.

A bad line is skipped and counted, a missing source is reported and replaced by
built-in samples; neither ever stops the run.
"""

# Standard libs for CSV splitting, timing, dates and paths
import csv  # quote-aware line splitting
import re  # list separators
import time  # run timings
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path  # filesystem-safe paths
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Set, Tuple

# Console logging
from loguru import logger  # console logger

from .catalog import AccountStore, ContentCatalog, PeopleDirectory
from .config import Settings, get_settings
from .errors import (
	DuplicateEntryError,
	InvalidEntityError,
	MalformedRecordError,
	NotFoundError,
	SourceUnavailableError,
)
from .models import (
	Account,
	Actor,
	ContentKind,
	Director,
	Ethnicity,
	Gender,
	Genre,
	Movie,
	Series,
	parse_genre,
)
from .samples import (
	build_seasons,
	sample_accounts,
	sample_actors,
	sample_directors,
	sample_movies,
	sample_series,
)
from .store import EntityStore

LIST_SEPARATOR = ';'  # inside a field: cast lists, notable works, awards
GENRE_SEPARATORS = re.compile(r"[;|,]")
EMPTY_MARKERS = {'', 'n/a', 'na', 'none', 'null'}


@dataclass(frozen=True)
class SourceFormat:
	name: str  # report key, e.g. "movies"
	filename: str  # looked up in every candidate directory
	min_fields: int  # shorter lines are malformed


@dataclass
class SourceReport:
	"""Outcome of one source. `skipped` = malformed + duplicates + not_found."""
	name: str
	location: Optional[str] = None  # where the source was read from
	found: bool = False
	lines_read: int = 0  # record lines (blank and comment lines excluded)
	added: int = 0
	skipped: int = 0
	malformed: int = 0
	duplicates: int = 0
	not_found: int = 0  # overlay lines with no matching content
	used_fallback: bool = False
	fallback_added: int = 0
	error: Optional[str] = None  # unexpected failure reading the source

	@property
	def ok(self) -> bool:
		return self.found and self.error is None


@dataclass
class IngestionReport:
	sources: List[SourceReport] = field(default_factory=list)
	elapsed_s: float = 0.0

	def get(self, name: str) -> Optional[SourceReport]:
		for report in self.sources:
			if report.name == name:
				return report
		return None

	@property
	def total_added(self) -> int:
		return sum(r.added + r.fallback_added for r in self.sources)

	@property
	def total_skipped(self) -> int:
		return sum(r.skipped for r in self.sources)

	@property
	def missing(self) -> List[str]:
		return [r.name for r in self.sources if not r.found]

	@property
	def fallbacks(self) -> List[str]:
		return [r.name for r in self.sources if r.used_fallback]

	@property
	def succeeded(self) -> int:
		return sum(1 for r in self.sources if r.ok)

	def summary(self) -> str:
		return (
			f"{self.succeeded}/{len(self.sources)} sources loaded | added={self.total_added} "
			f"skipped={self.total_skipped} | missing={self.missing or '-'} | fallback={self.fallbacks or '-'} "
			f"| {self.elapsed_s:.2f}s"
		)


# ---- locating sources --------------------------------------------------------


def default_search_paths(data_dir: Optional[Path] = None) -> List[Path]:
	"""
	Candidate directories in lookup order:
	configured dir, package resources, build output, working directory, project root.
	"""
	package_dir = Path(__file__).resolve().parent
	project_root = package_dir.parent
	paths: List[Path] = []
	if data_dir:
		paths.append(Path(data_dir))
	paths.extend([
		package_dir / 'resources' / 'data',  # embedded with the package
		project_root / 'build' / 'data',  # build output
		Path.cwd() / 'data',  # relative to the working directory
		project_root / 'data',  # project root
	])
	return paths


class SourceLocator:
	"""Finds a source file in an ordered list of directories; first hit wins."""

	def __init__(self, search_paths: Optional[Sequence[Path]] = None):
		self.search_paths = [Path(p) for p in (search_paths if search_paths is not None else default_search_paths())]

	def locate(self, filename: str) -> Path:
		for directory in self.search_paths:
			candidate = directory / filename
			if candidate.is_file():
				return candidate
		raise SourceUnavailableError(filename, self.search_paths)


# ---- field parsing -----------------------------------------------------------


def split_record(line: str) -> List[str]:
	"""Split one line on commas, honouring double-quoted fields."""
	try:
		row = next(csv.reader([line], skipinitialspace=True))
	except (csv.Error, StopIteration) as e:
		raise MalformedRecordError(f"unreadable line: {e}")
	return [value.strip() for value in row]


def _is_empty(value: Optional[str]) -> bool:
	return value is None or value.strip().lower() in EMPTY_MARKERS


def optional_field(fields: Sequence[str], index: int) -> Optional[str]:
	if index < len(fields) and not _is_empty(fields[index]):
		return fields[index]
	return None


def split_list(value: Optional[str]) -> List[str]:
	if _is_empty(value):
		return []
	return [item.strip() for item in value.split(LIST_SEPARATOR) if item.strip()]


def parse_int(value: str, name: str) -> int:
	try:
		return int(value.strip())
	except (AttributeError, ValueError):
		raise MalformedRecordError(f"{name} '{value}' is not an integer")


def parse_optional_int(value: Optional[str], name: str) -> Optional[int]:
	"""Empty, N/A and '-' mean absent."""
	if _is_empty(value) or value.strip() == '-':
		return None
	return parse_int(value, name)


def parse_rating(value: Optional[str]) -> Optional[float]:
	if _is_empty(value):
		return None
	try:
		rating = float(value)
	except ValueError:
		raise MalformedRecordError(f"rating '{value}' is not a number")
	if not 0.0 <= rating <= 10.0:
		raise MalformedRecordError(f"rating {rating} outside 0.0-10.0")
	return round(rating, 1)


def parse_date(value: Optional[str], name: str = 'date') -> Optional[date]:
	"""YYYY-MM-DD or a bare year (January 1st)."""
	if _is_empty(value):
		return None
	text = value.strip()
	if re.fullmatch(r"\d{4}", text):
		return date(int(text), 1, 1)
	try:
		return date.fromisoformat(text)
	except ValueError:
		raise MalformedRecordError(f"{name} '{value}' is not a valid date")


def parse_genres(value: Optional[str]) -> Set[Genre]:
	"""Known genres from a ';' / '|' separated field. No known genre at all is malformed."""
	genres: Set[Genre] = set()
	for token in GENRE_SEPARATORS.split(value or ''):
		genre = parse_genre(token)
		if genre is not None:
			genres.add(genre)
		elif token.strip():
			logger.debug(f"[Loader] Ignoring unknown genre '{token.strip()}'")
	if not genres:
		raise MalformedRecordError(f"no known genre in '{value}'")
	return genres


def parse_content_kind(value: str) -> ContentKind:
	text = (value or '').strip().lower()
	if text in ('movie', 'film'):
		return ContentKind.MOVIE
	if text in ('series', 'tv', 'show'):
		return ContentKind.SERIES
	raise MalformedRecordError(f"content kind '{value}' is neither movie nor series")


def require(value: Optional[str], name: str) -> str:
	if _is_empty(value):
		raise MalformedRecordError(f"{name} is required")
	return value.strip()


# ---- the pipeline ------------------------------------------------------------


class IngestionPipeline:
	"""
	Loads every declared source, in order, into the stores it was given.
	`run_all` always completes and returns an IngestionReport.
	"""

	SOURCES = (
		SourceFormat('accounts', 'accounts.txt', 5),
		SourceFormat('actors', 'actors.txt', 5),
		SourceFormat('directors', 'directors.txt', 5),
		SourceFormat('movies', 'movies.txt', 6),
		SourceFormat('series', 'series.txt', 8),
		SourceFormat('awards', 'awards_boxoffice.txt', 4),
	)

	def __init__(
		self,
		catalog: ContentCatalog,
		people: PeopleDirectory,
		accounts: AccountStore,
		locator: Optional[SourceLocator] = None,
		settings: Optional[Settings] = None,
	):
		self.catalog = catalog
		self.people = people
		self.accounts = accounts
		self.settings = settings or get_settings()
		self.locator = locator or SourceLocator(default_search_paths(self.settings.data_dir))
		self.last_report: Optional[IngestionReport] = None

		# source name -> line handler; a handler returns True when it added/updated a record
		self._handlers: Dict[str, Callable[[List[str]], bool]] = {
			'accounts': self._load_account,
			'actors': self._load_actor,
			'directors': self._load_director,
			'movies': self._load_movie,
			'series': self._load_series,
			'awards': self._load_awards,
		}
		# source name -> (store it fills, fallback writer); the awards overlay has none
		self._fallbacks: Dict[str, Tuple[EntityStore, Callable[[], int]]] = {
			'accounts': (self.accounts, self._fallback_accounts),
			'actors': (self.people.actors, self._fallback_actors),
			'directors': (self.people.directors, self._fallback_directors),
			'movies': (self.catalog.movies, self._fallback_movies),
			'series': (self.catalog.series, self._fallback_series),
		}

	def source_format(self, name: str) -> SourceFormat:
		for source in self.SOURCES:
			if source.name == name:
				return source
		raise KeyError(f"Unknown source '{name}'")

	def run_all(self) -> IngestionReport:
		"""Load every source in declared order. Never raises."""
		start = time.time()
		logger.info(f"[Loader] Starting ingestion of {len(self.SOURCES)} sources")
		report = IngestionReport()
		for source in self.SOURCES:
			try:
				source_report = self.load_source(source.name)
			except Exception as e:
				logger.exception(f"[Loader] Source '{source.name}' failed unexpectedly: {e}")
				source_report = SourceReport(name=source.name, error=str(e))
			report.sources.append(source_report)
		report.elapsed_s = time.time() - start
		self.last_report = report

		if report.missing or report.fallbacks or any(r.error for r in report.sources):
			logger.warning(f"[Loader] Ingestion finished with gaps: {report.summary()}")
		else:
			logger.info(f"[Loader] Ingestion finished: {report.summary()}")
		return report

	def load_source(self, name: str) -> SourceReport:
		"""Locate, read and load one source, then apply the fallback if nothing was added and the store is empty."""
		source = self.source_format(name)
		report = SourceReport(name=source.name)
		try:
			path = self.locator.locate(source.filename)
		except SourceUnavailableError as e:
			logger.warning(f"[Loader] {e}")
		else:
			report.found = True
			report.location = str(path)
			logger.info(f"[Loader] Loading {source.name} from {path}...")
			try:
				with open(path, 'r', encoding='utf-8', errors='replace') as f:
					self.ingest_lines(source.name, f, report)
			except OSError as e:
				logger.error(f"[Loader] Could not read {path}: {e}")
				report.error = str(e)

		if report.added == 0:
			self._apply_fallback(report)

		logger.info(
			f"[Loader] {source.name}: added={report.added} skipped={report.skipped} "
			f"(malformed={report.malformed} duplicates={report.duplicates} not_found={report.not_found})"
			f"{' | fallback=' + str(report.fallback_added) if report.used_fallback else ''}"
		)
		return report

	def ingest_lines(self, name: str, lines: Iterable[str], report: Optional[SourceReport] = None) -> SourceReport:
		"""Load records from `lines` for source `name`, skipping and counting bad ones. No fallback."""
		source = self.source_format(name)
		handler = self._handlers[source.name]
		report = report or SourceReport(name=source.name, found=True)

		for line_number, raw in enumerate(lines, 1):
			line = raw.strip()
			if not line or line.startswith('#'):  # blank or comment
				continue
			report.lines_read += 1
			try:
				fields = split_record(line)
				if len(fields) < source.min_fields:
					raise MalformedRecordError(f"expected at least {source.min_fields} fields, got {len(fields)}")
				added = handler(fields)
			except (MalformedRecordError, InvalidEntityError) as e:
				report.malformed += 1
				report.skipped += 1
				logger.warning(f"[Loader] {source.name}:{line_number} skipped: {e}")
				continue
			except DuplicateEntryError as e:
				report.duplicates += 1
				report.skipped += 1
				logger.info(f"[Loader] {source.name}:{line_number} skipped: {e}")
				continue
			except Exception as e:
				report.malformed += 1
				report.skipped += 1
				logger.warning(f"[Loader] {source.name}:{line_number} skipped after unexpected error: {e!r}")
				continue

			if added:
				report.added += 1
			else:
				report.not_found += 1
				report.skipped += 1
		return report

	# ---- line handlers ----

	def _load_account(self, fields: List[str]) -> bool:
		# id,username,email,password,full name[,gender,birth date,country]
		parse_int(fields[0], 'id')  # must be numeric; the store assigns the real id
		account = Account(
			username=require(fields[1], 'username'),
			email=require(fields[2], 'email'),
			password_hash=fields[3],
			display_name=fields[4],
			gender=Gender.from_code(optional_field(fields, 5)),
			birth_date=parse_date(optional_field(fields, 6), 'birth date'),
			country=optional_field(fields, 7),
		)
		self.accounts.save(account)
		return True

	def _person_fields(self, fields: List[str]) -> dict:
		# first,last,birth date,gender,nationality
		return dict(
			first_name=require(fields[0], 'first name'),
			last_name=fields[1],
			birth_date=parse_date(fields[2], 'birth date'),
			gender=Gender.from_code(fields[3]),
			nationality=Ethnicity.from_label(fields[4]),
		)

	def _load_actor(self, fields: List[str]) -> bool:
		# ...,biography,notable works
		actor = Actor(
			**self._person_fields(fields),
			biography=optional_field(fields, 5),
			notable_works=split_list(optional_field(fields, 6)),
		)
		self.people.actors.save(actor)
		return True

	def _load_director(self, fields: List[str]) -> bool:
		# ...,notable works,best works
		director = Director(
			**self._person_fields(fields),
			notable_works=split_list(optional_field(fields, 5)),
			best_works=split_list(optional_field(fields, 6)),
		)
		self.people.directors.save(director)
		return True

	def _resolve_cast(self, names: Iterable[str]) -> List[Actor]:
		cast: List[Actor] = []
		seen = set()
		for name in names:
			actor = self.people.resolve_actor(name)
			if actor is not None and actor.id not in seen:
				seen.add(actor.id)
				cast.append(actor)
		return cast

	def _load_movie(self, fields: List[str]) -> bool:
		# title,year,genres,duration,director,rating[,cast]
		title = require(fields[0], 'title')
		year = parse_int(fields[1], 'year')
		genres = parse_genres(fields[2])
		duration = parse_optional_int(fields[3], 'duration') or 0
		directors = split_list(fields[4])
		rating = parse_rating(fields[5])
		cast_names = split_list(optional_field(fields, 6))

		movie = Movie(
			title=title,
			release_year=year,
			genres=genres,
			rating=rating,
			director=directors[0] if directors else None,
			duration_minutes=duration,
			cast=self._resolve_cast(cast_names),
		)
		self.catalog.movies.save(movie)
		return True

	def _load_series(self, fields: List[str]) -> bool:
		# title,genres,season count,start year,end year or -,rating,cast,director
		title = require(fields[0], 'title')
		genres = parse_genres(fields[1])
		season_count = parse_int(fields[2], 'season count')
		if season_count < 0:
			raise MalformedRecordError(f"season count {season_count} is negative")
		start_year = parse_int(fields[3], 'start year')
		end_year = parse_optional_int(fields[4], 'end year')
		if end_year is not None and end_year < start_year:
			logger.warning(f"[Loader] Series '{title}' ends ({end_year}) before it starts ({start_year}); treating as ongoing")
			end_year = None
		rating = parse_rating(fields[5])
		cast_names = split_list(fields[6])
		director = optional_field(fields, 7)

		series = Series(
			title=title,
			release_year=start_year,
			end_year=end_year,
			genres=genres,
			rating=rating,
			director=director,
			seasons=build_seasons(season_count, self.settings.episodes_per_season),
			cast=self._resolve_cast(cast_names),
		)
		self.catalog.series.save(series)
		return True

	def _load_awards(self, fields: List[str]) -> bool:
		# kind,title,year[-end],awards[,box office[,nominations]]
		kind = parse_content_kind(fields[0])
		title = require(fields[1], 'title')
		year = parse_int(fields[2].split('-')[0], 'year')
		awards = split_list(fields[3])
		box_office = optional_field(fields, 4)
		nominations = optional_field(fields, 5)

		content = self.catalog.find_by_title_and_year(title, year, kind)
		if content is None:
			logger.debug(f"[Loader] awards: {kind.value} '{title}' ({year}) not in catalog")
			return False
		if awards:
			content.awards = awards
		if box_office:
			content.box_office = box_office
		if nominations:
			content.nominations = nominations
		try:
			self.catalog.save(content)
		except NotFoundError:
			# deleted between lookup and update
			return False
		return True

	# ---- fallbacks ----

	def _apply_fallback(self, report: SourceReport) -> None:
		"""Samples only ever fill an empty store."""
		if report.name not in self._fallbacks or not self.settings.use_fallback_samples:
			return
		store, writer = self._fallbacks[report.name]
		if store.count() > 0:
			logger.info(f"[Loader] No {report.name} added but {store.name} already holds {store.count()}; no samples")
			return
		logger.warning(f"[Loader] No {report.name} loaded; using built-in samples")
		report.used_fallback = True
		report.fallback_added = writer()

	def _save_samples(self, store, records) -> int:
		added = 0
		for record in records:
			try:
				store.save(record)
				added += 1
			except DuplicateEntryError:
				logger.debug(f"[Loader] Sample already present in {store.name}")
		return added

	def _fallback_accounts(self) -> int:
		return self._save_samples(self.accounts, sample_accounts())

	def _fallback_actors(self) -> int:
		return self._save_samples(self.people.actors, sample_actors())

	def _fallback_directors(self) -> int:
		return self._save_samples(self.people.directors, sample_directors())

	def _fallback_movies(self) -> int:
		movies = sample_movies()
		for movie in movies:
			movie.cast = self._resolve_cast(a.full_name for a in movie.cast)
		return self._save_samples(self.catalog.movies, movies)

	def _fallback_series(self) -> int:
		series_list = sample_series(self.settings.episodes_per_season)
		for series in series_list:
			series.cast = self._resolve_cast(a.full_name for a in series.cast)
		return self._save_samples(self.catalog.series, series_list)
