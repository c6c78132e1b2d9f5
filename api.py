"""
FastAPI server exposing the film catalog.
Endpoints:
- GET /health: basic health check
- GET /search: structured search (title, kind, years, ratings, genre)
- GET /search/natural?q=...: natural-language search
- /movies, /series: list, read, create, update, delete
- /people/{actors|directors}: list, read, filmography, delete
- /accounts: register and look up accounts, per-account watchlists
- /ratings: rate content and read averages
- GET /ingestion: per-source report of the startup load

Startup binds the process registry and runs ingestion once.
"""

# Import standard libraries for timing
import time  # measure startup and request latencies
from typing import List, Optional  # precise typing for clarity

# Import FastAPI for building the web API and Pydantic for request/response models
from fastapi import FastAPI, HTTPException, Query, Request  # FastAPI primitives
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field  # request/response schema definitions

# Import our internal modules
from film_catalog.config import configure_logging, get_settings
from film_catalog.data_loader import SourceReport
from film_catalog.errors import DuplicateEntryError, InvalidEntityError, NotFoundError
from film_catalog.models import (
	Account,
	ContentItem,
	ContentKind,
	Genre,
	Movie,
	Person,
	QueryDescriptor,
	Rating,
	Series,
	WatchlistEntry,
	kind_of,
	parse_genre,
)
from film_catalog.registry import Registry, get_registry, init_registry, shutdown_registry
from film_catalog.samples import build_seasons

# Import loguru for simple, structured console logging
from loguru import logger  # convenient console logger

# Instantiate the FastAPI application with metadata
app = FastAPI(title="Film Catalog API", version="1.0.0")  # web app

STARTUP_TIME_S: float = 0.0  # measures how long startup took


# ---- schemas -----------------------------------------------------------------


class ContentOut(BaseModel):
	id: int  # store-assigned id (unique per kind)
	kind: str  # "movie" or "series"
	title: str
	year: Optional[int] = None  # release / start year
	end_year: Optional[int] = None  # series only, None = ongoing
	genres: List[str]  # genre labels
	rating: Optional[float] = None
	director: Optional[str] = None
	cast: List[str]  # performer names
	duration_minutes: Optional[int] = None  # movies only
	seasons: Optional[int] = None  # series only
	episodes: Optional[int] = None  # series only
	awards: List[str] = []
	box_office: Optional[str] = None


class ContentIn(BaseModel):
	title: str
	year: Optional[int] = None
	genres: List[str] = []
	rating: Optional[float] = Field(default=None, ge=0.0, le=10.0)
	director: Optional[str] = None
	cast: List[str] = []  # performer names, resolved against the actor store


class MovieIn(ContentIn):
	duration_minutes: int = Field(default=0, ge=0)


class SeriesIn(ContentIn):
	end_year: Optional[int] = None
	season_count: Optional[int] = Field(default=None, ge=0)  # None keeps existing seasons on update


class PersonOut(BaseModel):
	id: int
	first_name: str
	last_name: str
	full_name: str
	gender: str
	nationality: str
	notable_works: List[str]


class AccountIn(BaseModel):
	username: str
	email: str
	password_hash: str  # already hashed by the caller
	display_name: str = ''


class AccountOut(BaseModel):
	id: int
	username: str
	email: str
	display_name: str


class RatingIn(BaseModel):
	account_id: int
	content_id: int
	kind: ContentKind = ContentKind.MOVIE
	score: float = Field(ge=0.0, le=10.0)
	review: Optional[str] = None


class RatingOut(BaseModel):
	id: int
	account_id: int
	content_id: int
	kind: str
	score: float
	review: Optional[str] = None


class RatingSummary(BaseModel):
	content_id: int
	kind: str
	count: int
	average: Optional[float] = None


class WatchlistIn(BaseModel):
	content_id: int
	kind: ContentKind = ContentKind.MOVIE
	notes: Optional[str] = None


class WatchedIn(BaseModel):
	watched: bool = True


class WatchlistOut(BaseModel):
	id: int
	account_id: int
	content_id: int
	kind: str
	title: Optional[str] = None  # None when the content has since been deleted
	watched: bool
	notes: Optional[str] = None


class SearchResponse(BaseModel):
	elapsed_ms: float  # server-side search time in ms
	count: int
	results: List[ContentOut]


class SourceReportOut(BaseModel):
	name: str
	location: Optional[str] = None
	found: bool
	added: int
	skipped: int
	malformed: int
	duplicates: int
	not_found: int
	used_fallback: bool
	fallback_added: int


class IngestionOut(BaseModel):
	summary: str
	total_added: int
	total_skipped: int
	sources: List[SourceReportOut]


# ---- conversions -------------------------------------------------------------


def _content_out(item: ContentItem) -> ContentOut:
	kind = kind_of(item)
	out = ContentOut(
		id=item.id,
		kind=kind.value,
		title=item.title,
		year=item.effective_year,
		genres=sorted(g.label for g in item.genres),
		rating=item.rating,
		director=item.director,
		cast=[a.full_name for a in item.cast],
		awards=list(item.awards),
		box_office=item.box_office,
	)
	if kind is ContentKind.MOVIE:
		out.duration_minutes = item.duration_minutes
	else:
		out.end_year = item.end_year
		out.seasons = len(item.seasons)
		out.episodes = get_registry().catalog.total_episodes(item)
	return out


def _person_out(person: Person) -> PersonOut:
	return PersonOut(
		id=person.id,
		first_name=person.first_name,
		last_name=person.last_name,
		full_name=person.full_name,
		gender=person.gender.name,
		nationality=person.nationality.value,
		notable_works=list(person.notable_works),
	)


def _account_out(account: Account) -> AccountOut:
	return AccountOut(id=account.id, username=account.username, email=account.email, display_name=account.display_name)


def _rating_out(rating: Rating) -> RatingOut:
	return RatingOut(
		id=rating.id,
		account_id=rating.account_id,
		content_id=rating.content_id,
		kind=rating.content_kind.value,
		score=rating.score,
		review=rating.review,
	)


def _watchlist_out(entry: WatchlistEntry) -> WatchlistOut:
	content = get_registry().catalog.get(entry.content_kind, entry.content_id)
	return WatchlistOut(
		id=entry.id,
		account_id=entry.account_id,
		content_id=entry.content_id,
		kind=entry.content_kind.value,
		title=content.title if content is not None else None,
		watched=entry.watched,
		notes=entry.notes,
	)


def _source_out(report: SourceReport) -> SourceReportOut:
	return SourceReportOut(
		name=report.name,
		location=report.location,
		found=report.found,
		added=report.added,
		skipped=report.skipped,
		malformed=report.malformed,
		duplicates=report.duplicates,
		not_found=report.not_found,
		used_fallback=report.used_fallback,
		fallback_added=report.fallback_added,
	)


def _parse_genre_or_422(raw: str) -> Genre:
	genre = parse_genre(raw)
	if genre is None:
		raise HTTPException(status_code=422, detail=f"Unknown genre '{raw}'")
	return genre


def _content_fields(payload: ContentIn) -> dict:
	return dict(
		title=payload.title,
		release_year=payload.year,
		genres={_parse_genre_or_422(g) for g in payload.genres},
		rating=payload.rating,
		director=payload.director,
	)


def _save_content(content: ContentItem, cast_names: List[str], registry: Registry) -> ContentOut:
	"""Store the content; a rejected request never creates actors for its cast."""
	registry.catalog.store_for(kind_of(content)).check(content)
	cast = []
	for name in cast_names:
		actor = registry.people.resolve_actor(name)
		if actor is not None:
			cast.append(actor)
	content.cast = cast
	return _content_out(registry.catalog.save(content))


def _require(item, entity: str, entity_id: int):
	if item is None:
		raise NotFoundError(entity, entity_id)
	return item


# ---- error translation -------------------------------------------------------


@app.exception_handler(DuplicateEntryError)
async def duplicate_entry_handler(request: Request, exc: DuplicateEntryError) -> JSONResponse:
	return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
	return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidEntityError)
async def invalid_entity_handler(request: Request, exc: InvalidEntityError) -> JSONResponse:
	return JSONResponse(status_code=422, content={"detail": str(exc)})


# ---- lifecycle ---------------------------------------------------------------


# FastAPI startup hook to bind the registry and load data once
@app.on_event("startup")
async def startup_event():
	"""Bind the registry and run ingestion unless it already ran."""
	global STARTUP_TIME_S
	start = time.time()
	configure_logging(get_settings().log_level)
	logger.info("[API] Startup: binding registry and loading catalog...")

	registry = init_registry()
	if registry.last_report is None:
		report = registry.load()
		logger.info(f"[API] Ingestion: {report.summary()}")

	STARTUP_TIME_S = time.time() - start
	logger.info(
		f"[API] Startup complete in {STARTUP_TIME_S:.2f}s. "
		f"{registry.catalog.count()} titles, {registry.people.count()} people, {registry.accounts.count()} accounts."
	)


@app.on_event("shutdown")
async def shutdown_event():
	shutdown_registry()


# Simple health endpoint for readiness checks
@app.get("/health")
async def health():
	"""Return minimal health info for liveness/readiness probes."""
	registry = get_registry()
	return {
		"status": "ok",
		"loaded": registry.last_report is not None,
		"movies": registry.catalog.movies.count(),
		"series": registry.catalog.series.count(),
		"startup_seconds": round(STARTUP_TIME_S, 2),
	}


@app.get("/ingestion", response_model=IngestionOut)
def ingestion_report():
	report = get_registry().last_report
	if report is None:
		raise HTTPException(status_code=404, detail="Ingestion has not run")
	return IngestionOut(
		summary=report.summary(),
		total_added=report.total_added,
		total_skipped=report.total_skipped,
		sources=[_source_out(r) for r in report.sources],
	)


# ---- search ------------------------------------------------------------------


def _search_response(descriptor: QueryDescriptor) -> SearchResponse:
	start = time.time()
	results = get_registry().engine.search(descriptor)
	elapsed_ms = (time.time() - start) * 1000
	logger.info(f"[API] /search served {len(results)} results in {elapsed_ms:.2f} ms")
	return SearchResponse(elapsed_ms=round(elapsed_ms, 2), count=len(results), results=[_content_out(r) for r in results])


@app.get("/search", response_model=SearchResponse)
def search(
	q: Optional[str] = Query(None, description="Free text matched against titles"),
	title: Optional[str] = None,
	kind: ContentKind = ContentKind.ANY,
	min_year: Optional[int] = None,
	max_year: Optional[int] = None,
	min_rating: Optional[float] = None,
	max_rating: Optional[float] = None,
	genre: Optional[str] = None,
):
	"""Structured search; every parameter is optional and narrows the result."""
	descriptor = QueryDescriptor(
		query=q,
		title=title,
		kind=kind,
		min_year=min_year,
		max_year=max_year,
		min_rating=min_rating,
		max_rating=max_rating,
		genre=_parse_genre_or_422(genre) if genre else None,
	)
	logger.debug(f"[API] /search {descriptor}")
	return _search_response(descriptor)


@app.get("/search/natural", response_model=SearchResponse)
def search_natural(q: str = Query(..., description="Natural language query")):
	try:
		descriptor = get_registry().engine.parse_query(q)
	except ValueError as e:
		raise HTTPException(status_code=422, detail=str(e))
	logger.debug(f"[API] /search/natural q='{q}' -> {descriptor}")
	return _search_response(descriptor)


# ---- content -----------------------------------------------------------------


@app.get("/movies", response_model=List[ContentOut])
def list_movies():
	return [_content_out(m) for m in get_registry().catalog.movies.get_all()]


@app.get("/movies/{movie_id}", response_model=ContentOut)
def get_movie(movie_id: int):
	movie = _require(get_registry().catalog.movies.get_by_id(movie_id), 'movies', movie_id)
	return _content_out(movie)


@app.post("/movies", response_model=ContentOut, status_code=201)
def create_movie(payload: MovieIn):
	movie = Movie(duration_minutes=payload.duration_minutes, **_content_fields(payload))
	return _save_content(movie, payload.cast, get_registry())


@app.put("/movies/{movie_id}", response_model=ContentOut)
def update_movie(movie_id: int, payload: MovieIn):
	registry = get_registry()
	current = _require(registry.catalog.movies.get_by_id(movie_id), 'movies', movie_id)
	movie = Movie(duration_minutes=payload.duration_minutes, **_content_fields(payload))
	movie.id = movie_id
	movie.awards, movie.box_office, movie.nominations = current.awards, current.box_office, current.nominations
	return _save_content(movie, payload.cast, registry)


@app.delete("/movies/{movie_id}", status_code=204)
def delete_movie(movie_id: int):
	if not get_registry().catalog.delete(ContentKind.MOVIE, movie_id):
		raise NotFoundError('movies', movie_id)


@app.get("/series", response_model=List[ContentOut])
def list_series():
	return [_content_out(s) for s in get_registry().catalog.series.get_all()]


@app.get("/series/{series_id}", response_model=ContentOut)
def get_series(series_id: int):
	series = _require(get_registry().catalog.series.get_by_id(series_id), 'series', series_id)
	return _content_out(series)


@app.get("/series/{series_id}/performers", response_model=List[str])
def series_performers(series_id: int):
	registry = get_registry()
	_require(registry.catalog.series.get_by_id(series_id), 'series', series_id)
	return [p.full_name for p in registry.catalog.series_performers(series_id)]


@app.post("/series", response_model=ContentOut, status_code=201)
def create_series(payload: SeriesIn):
	registry = get_registry()
	series = Series(
		end_year=payload.end_year,
		seasons=build_seasons(payload.season_count or 0, registry.settings.episodes_per_season),
		**_content_fields(payload),
	)
	return _save_content(series, payload.cast, registry)


@app.put("/series/{series_id}", response_model=ContentOut)
def update_series(series_id: int, payload: SeriesIn):
	registry = get_registry()
	current = _require(registry.catalog.series.get_by_id(series_id), 'series', series_id)
	if payload.season_count is None:
		seasons = current.seasons
	else:
		seasons = build_seasons(payload.season_count, registry.settings.episodes_per_season)
	series = Series(end_year=payload.end_year, seasons=seasons, **_content_fields(payload))
	series.id = series_id
	series.awards, series.box_office, series.nominations = current.awards, current.box_office, current.nominations
	return _save_content(series, payload.cast, registry)


@app.delete("/series/{series_id}", status_code=204)
def delete_series(series_id: int):
	if not get_registry().catalog.delete(ContentKind.SERIES, series_id):
		raise NotFoundError('series', series_id)


# ---- people ------------------------------------------------------------------


def _person_store(role: str):
	people = get_registry().people
	if role == 'actors':
		return people.actors
	if role == 'directors':
		return people.directors
	raise HTTPException(status_code=404, detail=f"Unknown role '{role}'")


@app.get("/people/{role}", response_model=List[PersonOut])
def list_people(role: str, name: Optional[str] = None):
	store = _person_store(role)
	people = store.find_by_name(name) if name else store.get_all()
	return [_person_out(p) for p in people]


@app.get("/people/{role}/{person_id}", response_model=PersonOut)
def get_person(role: str, person_id: int):
	store = _person_store(role)
	return _person_out(_require(store.get_by_id(person_id), store.name, person_id))


@app.get("/people/{role}/{person_id}/filmography", response_model=List[ContentOut])
def filmography(role: str, person_id: int):
	store = _person_store(role)
	person = _require(store.get_by_id(person_id), store.name, person_id)
	return [_content_out(c) for c in get_registry().catalog.filmography(person)]


@app.delete("/people/{role}/{person_id}", status_code=204)
def delete_person(role: str, person_id: int):
	store = _person_store(role)
	if not store.delete(person_id):
		raise NotFoundError(store.name, person_id)


# ---- accounts and ratings ----------------------------------------------------


@app.post("/accounts", response_model=AccountOut, status_code=201)
def register_account(payload: AccountIn):
	account = Account(
		username=payload.username,
		email=payload.email,
		password_hash=payload.password_hash,
		display_name=payload.display_name,
	)
	return _account_out(get_registry().accounts.save(account))


@app.get("/accounts/{username}", response_model=AccountOut)
def get_account(username: str):
	account = get_registry().accounts.find_by_username(username)
	if account is None:
		raise HTTPException(status_code=404, detail=f"No account named '{username}'")
	return _account_out(account)


@app.post("/ratings", response_model=RatingOut)
def rate(payload: RatingIn):
	registry = get_registry()
	if payload.kind is ContentKind.ANY:
		raise HTTPException(status_code=422, detail="kind must be movie or series")
	_require(registry.accounts.get_by_id(payload.account_id), 'accounts', payload.account_id)
	_require(registry.catalog.get(payload.kind, payload.content_id), payload.kind.value, payload.content_id)
	rating = registry.ratings.rate(payload.account_id, payload.content_id, payload.score, payload.kind, payload.review)
	return _rating_out(rating)


@app.get("/ratings/{kind}/{content_id}", response_model=RatingSummary)
def rating_summary(kind: ContentKind, content_id: int):
	ratings = get_registry().ratings
	return RatingSummary(
		content_id=content_id,
		kind=kind.value,
		count=len(ratings.for_content(content_id, kind)),
		average=ratings.average_for(content_id, kind),
	)


# ---- watchlists --------------------------------------------------------------


def _content_kind_or_422(kind: ContentKind) -> ContentKind:
	if kind is ContentKind.ANY:
		raise HTTPException(status_code=422, detail="kind must be movie or series")
	return kind


@app.get("/accounts/{account_id}/watchlist", response_model=List[WatchlistOut])
def get_watchlist(account_id: int):
	registry = get_registry()
	_require(registry.accounts.get_by_id(account_id), 'accounts', account_id)
	return [_watchlist_out(e) for e in registry.watchlists.for_account(account_id)]


@app.post("/accounts/{account_id}/watchlist", response_model=WatchlistOut, status_code=201)
def add_to_watchlist(account_id: int, payload: WatchlistIn):
	registry = get_registry()
	kind = _content_kind_or_422(payload.kind)
	_require(registry.accounts.get_by_id(account_id), 'accounts', account_id)
	_require(registry.catalog.get(kind, payload.content_id), kind.value, payload.content_id)
	entry = registry.watchlists.add(account_id, payload.content_id, kind, payload.notes)
	logger.info(f"[API] Account {account_id} watchlisted {kind.value} {payload.content_id}")
	return _watchlist_out(entry)


@app.put("/accounts/{account_id}/watchlist/{kind}/{content_id}", response_model=WatchlistOut)
def mark_watched(account_id: int, kind: ContentKind, content_id: int, payload: WatchedIn):
	entry = get_registry().watchlists.mark_watched(account_id, content_id, _content_kind_or_422(kind), payload.watched)
	if entry is None:
		raise HTTPException(status_code=404, detail=f"{kind.value} {content_id} is not on the watchlist")
	return _watchlist_out(entry)


@app.delete("/accounts/{account_id}/watchlist/{kind}/{content_id}", status_code=204)
def remove_from_watchlist(account_id: int, kind: ContentKind, content_id: int):
	if not get_registry().watchlists.remove(account_id, content_id, _content_kind_or_422(kind)):
		raise HTTPException(status_code=404, detail=f"{kind.value} {content_id} is not on the watchlist")
