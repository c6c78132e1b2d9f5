"""
Query parsing module.
Extracts a year range, a genre, a content kind and a rating bound from natural language,
and keeps whatever is left as free text.
"""

import re  # regex for date/rating extraction
from typing import Dict, List, Optional, Tuple  # type annotations

from rapidfuzz import fuzz, process  # fuzzy matching utilities

from loguru import logger  # console logging

from .models import GENRE_SYNONYMS, ContentKind, Genre, QueryDescriptor  # structured query representation


class QueryParser:
	"""
	Parses natural language queries into a QueryDescriptor.
	Regex for years and ratings, a synonym map plus fuzzy matching for genres,
	and a small vocabulary for the content kind.
	"""

	# Pre-compiled regex patterns for date expressions
	RE_DECADE = re.compile(r"(?P<prefix>early|mid|late)?\s*(?P<decade>\b\d{2})\s*'?s\b", re.I)  # '90s, mid 80s
	RE_CENTURY_DECADE = re.compile(r"(?P<prefix>early|mid|late)?\s*(?P<century>\b\d{3}0)\s*'?s\b", re.I)  # early 2000s
	RE_YEAR = re.compile(r"\b(19\d{2}|20\d{2})\b")  # single year like 1995
	RE_RANGE = re.compile(r"\b(19\d{2}|20\d{2})\s*(?:-|–|to)\s*(19\d{2}|20\d{2})\b", re.I)  # 1990-1999
	RE_BEFORE = re.compile(r"\b(?:before|until)\s+(19\d{2}|20\d{2})\b", re.I)  # before 2000
	RE_AFTER = re.compile(r"\b(?:after|since)\s+(19\d{2}|20\d{2})\b", re.I)  # after 2010

	# Rating bounds: "rated above 8", "rating over 7.5", "rated below 5"
	RE_MIN_RATING = re.compile(r"\b(?:rated|rating|score)\s+(?:above|over|at\s+least)\s+(\d+(?:\.\d+)?)", re.I)
	RE_MAX_RATING = re.compile(r"\b(?:rated|rating|score)\s+(?:below|under|at\s+most)\s+(\d+(?:\.\d+)?)", re.I)

	MOVIE_WORDS = {'movie', 'movies', 'film', 'films'}
	SERIES_WORDS = {'series', 'shows', 'tv'}  # bare "show" is usually "show me"

	STOPWORDS = {
		'a', 'an', 'and', 'or', 'the', 'of', 'in', 'from', 'about', 'with', 'by', 'for', 'on',
		'me', 'find', 'show', 'some', 'any', 'all', 'good', 'great', 'best', 'top', 'released',
	}

	FUZZY_THRESHOLD = 88  # minimum rapidfuzz ratio for a typo'd genre token

	def __init__(self):
		# genre vocabulary: lowercase labels, enum-style names and synonyms
		self._genre_terms: Dict[str, Genre] = {}
		for genre in Genre:
			self._genre_terms[genre.value.lower()] = genre
			self._genre_terms[genre.name.lower().replace('_', ' ')] = genre
		for synonym, genre in GENRE_SYNONYMS.items():
			self._genre_terms[synonym.lower()] = genre
		# longest first so "science fiction" wins over "fiction"-like fragments
		self._genre_list = sorted(self._genre_terms, key=len, reverse=True)
		logger.debug(f"[Parser] Initialized with {len(self._genre_list)} genre terms")

	def parse(self, query: str) -> QueryDescriptor:
		"""Main entry: produce a QueryDescriptor from a raw string."""
		if not query or not query.strip():  # empty input guard
			raise ValueError("Query cannot be empty")

		q = ' '.join(query.strip().lower().split())  # normalize spaces and casing
		logger.debug(f"[Parser] Input query: '{query}' -> normalized: '{q}'")

		# 1) Rating bounds (before years so "rated above 8" never reads as a year)
		min_rating, max_rating, q = self._extract_rating(q)

		# 2) Year range
		year_range, q = self._extract_year_range(q)

		# 3) Genre (synonyms + direct keywords + fuzzy)
		genre, genre_terms = self._extract_genre(q)

		# 4) Content kind
		kind = self._extract_kind(q)

		# 5) Remaining keywords become the free-text query
		keywords = self._extract_keywords(q, genre_terms)

		parsed = QueryDescriptor(
			query=' '.join(keywords) or None,
			kind=kind,
			min_year=year_range[0] if year_range else None,
			max_year=year_range[1] if year_range else None,
			min_rating=min_rating,
			max_rating=max_rating,
			genre=genre,
		)
		logger.debug(
			f"[Parser] Parsed result | genre={genre} | kind={kind.value} | year_range={year_range} "
			f"| rating=({min_rating}, {max_rating}) | keywords={keywords}"
		)
		return parsed

	def _extract_rating(self, q: str) -> Tuple[Optional[float], Optional[float], str]:
		min_rating = max_rating = None
		m = self.RE_MIN_RATING.search(q)
		if m:
			min_rating = float(m.group(1))
			q = q[:m.start()] + ' ' + q[m.end():]
			logger.debug(f"[Parser] Found minimum rating {min_rating}")
		m = self.RE_MAX_RATING.search(q)
		if m:
			max_rating = float(m.group(1))
			q = q[:m.start()] + ' ' + q[m.end():]
			logger.debug(f"[Parser] Found maximum rating {max_rating}")
		return min_rating, max_rating, q

	def _extract_year_range(self, q: str) -> Tuple[Optional[Tuple[int, int]], str]:
		"""The first matching pattern decides; its text is removed from the query."""
		# 1990-1999 explicit range
		r = self.RE_RANGE.search(q)
		if r:
			start, end = int(r.group(1)), int(r.group(2))
			if start > end:  # normalize order
				start, end = end, start
			logger.debug(f"[Parser] Found explicit range -> ({start}, {end})")
			return (start, end), self._cut(q, r)

		# before / after boundaries
		m = self.RE_BEFORE.search(q)
		if m:
			end = int(m.group(1))
			logger.debug(f"[Parser] Found 'before' boundary: < {end}")
			return (1900, end - 1), self._cut(q, m)
		m = self.RE_AFTER.search(q)
		if m:
			start = int(m.group(1))
			logger.debug(f"[Parser] Found 'after' boundary: >= {start}")
			return (start, 2100), self._cut(q, m)

		# early/mid/late 2000s
		m = self.RE_CENTURY_DECADE.search(q)
		if m:
			prefix = (m.group('prefix') or '').lower()
			res = self._prefix_to_range(int(m.group('century')), prefix)
			logger.debug(f"[Parser] Found century-decade '{m.group('century')}' prefix '{prefix or '-'}' -> {res}")
			return res, self._cut(q, m)

		# 90s/80s decade mapping (00-29->2000s, 30-99->1900s)
		m = self.RE_DECADE.search(q)
		if m:
			prefix = (m.group('prefix') or '').lower()
			dec = int(m.group('decade'))
			base = 1900 if dec >= 30 else 2000
			res = self._prefix_to_range(base + dec, prefix)
			logger.debug(f"[Parser] Found decade '{dec}' (base {base}) prefix '{prefix or '-'}' -> {res}")
			return res, self._cut(q, m)

		# single year
		m = self.RE_YEAR.search(q)
		if m:
			y = int(m.group(0))
			logger.debug(f"[Parser] Found single year -> ({y}, {y})")
			return (y, y), self._cut(q, m)

		logger.debug("[Parser] No year information found")
		return None, q

	@staticmethod
	def _cut(q: str, match) -> str:
		return q[:match.start()] + ' ' + q[match.end():]

	def _prefix_to_range(self, decade_start: int, prefix: str) -> Tuple[int, int]:
		# Convert optional prefix into a sub-range within the decade
		if prefix == 'early':  # first half-decade
			return (decade_start, decade_start + 4)
		if prefix == 'mid':  # second half-decade
			return (decade_start + 5, decade_start + 9)
		if prefix == 'late':  # last third bias
			return (decade_start + 7, decade_start + 9)
		return (decade_start, decade_start + 9)  # full decade default

	def _extract_genre(self, q: str) -> Tuple[Optional[Genre], List[str]]:
		"""The genre mentioned first wins. Also returns the query words that named a genre."""
		found: List[Tuple[int, Genre, str]] = []  # (position, genre, matched text)
		for term in self._genre_list:
			m = re.search(r"\b" + re.escape(term) + r"\b", q)
			if m:
				found.append((m.start(), self._genre_terms[term], term))
		if not found:
			# Fuzzy token-level match to handle small typos/variants
			for m in re.finditer(r"[a-z]{4,}", q):
				best = process.extractOne(m.group(0), self._genre_list, scorer=fuzz.ratio)
				if best and best[1] >= self.FUZZY_THRESHOLD:
					logger.debug(f"[Parser] Genre fuzzy match: '{m.group(0)}' -> '{best[0]}' (score={best[1]:.0f})")
					found.append((m.start(), self._genre_terms[best[0]], m.group(0)))
		if not found:
			return None, []
		found.sort(key=lambda f: f[0])
		words = [word for _, _, text in found for word in re.findall(r"[a-z0-9']+", text)]
		return found[0][1], words

	def _extract_kind(self, q: str) -> ContentKind:
		tokens = set(re.findall(r"[a-z]+", q))
		wants_movies = bool(tokens & self.MOVIE_WORDS)
		wants_series = bool(tokens & self.SERIES_WORDS)
		if wants_movies and not wants_series:
			return ContentKind.MOVIE
		if wants_series and not wants_movies:
			return ContentKind.SERIES
		return ContentKind.ANY

	def _extract_keywords(self, q: str, genre_words: List[str]) -> List[str]:
		# Tokenize to alphanumerics/apostrophes
		tokens = re.findall(r"[a-z0-9']+", q)
		remove = set(self.STOPWORDS) | self.MOVIE_WORDS | self.SERIES_WORDS | set(genre_words)
		# Keep tokens not in removal set, deduplicate while preserving order
		seen = set()
		keywords = []
		for t in tokens:
			if t not in remove and t not in seen:
				seen.add(t)
				keywords.append(t)
		logger.debug(f"[Parser] Final keywords: {keywords}")
		return keywords
