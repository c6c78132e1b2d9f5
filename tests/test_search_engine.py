"""
Tests for SearchEngine predicate composition.
"""

from datetime import date

import pytest

from film_catalog.catalog import ContentCatalog
from film_catalog.models import ContentKind, Genre, Movie, QueryDescriptor, Series
from film_catalog.search_engine import SearchEngine, build_predicates


@pytest.fixture
def alpha_beta():
	catalog = ContentCatalog()
	catalog.save(Movie(title='Alpha', release_year=2001, rating=7.0, genres={Genre.DRAMA}))
	catalog.save(Movie(title='Beta', release_year=1995, rating=9.0, genres={Genre.COMEDY}))
	return SearchEngine(catalog)


@pytest.fixture
def mixed():
	catalog = ContentCatalog()
	catalog.save(Movie(title='Old Timer', release_year=1999, rating=6.0, genres={Genre.WESTERN}))
	catalog.save(Movie(title='Mid Decade', release_year=2005, rating=8.0, genres={Genre.ACTION, Genre.SCI_FI}))
	catalog.save(Movie(title='Undated', rating=8.5, genres={Genre.ACTION}))
	catalog.save(Movie(title='Dated Only', release_date=date(2007, 5, 1), genres={Genre.ACTION}))
	catalog.save(Series(title='Dark Matter', release_year=2015, end_year=2017, rating=7.0, genres={Genre.SCI_FI}))
	catalog.save(Series(title='Old Westerns', release_year=2003, genres={Genre.WESTERN}))
	return SearchEngine(catalog)


def titles(items):
	return [item.title for item in items]


def test_min_rating_selects_beta(alpha_beta):
	assert titles(alpha_beta.search(QueryDescriptor(min_rating=8.0))) == ['Beta']


def test_no_item_has_the_requested_genre(alpha_beta):
	assert alpha_beta.search(QueryDescriptor(min_year=2000, genre=Genre.ACTION)) == []


def test_empty_descriptor_returns_every_candidate_in_order(mixed):
	expected = ['Old Timer', 'Mid Decade', 'Undated', 'Dated Only', 'Dark Matter', 'Old Westerns']
	assert titles(mixed.search(QueryDescriptor())) == expected
	assert titles(mixed.search()) == expected
	assert build_predicates(QueryDescriptor()) == []


def test_year_range_is_inclusive_and_requires_a_year(mixed):
	found = titles(mixed.search(QueryDescriptor(min_year=2000, max_year=2010)))
	assert 'Mid Decade' in found
	assert 'Old Timer' not in found
	assert 'Undated' not in found
	# release date stands in for a missing year
	assert 'Dated Only' in found
	assert titles(mixed.search(QueryDescriptor(min_year=2005, max_year=2005))) == ['Mid Decade']


def test_open_year_bounds(mixed):
	assert titles(mixed.search(QueryDescriptor(max_year=2000))) == ['Old Timer']
	assert titles(mixed.search(QueryDescriptor(min_year=2010))) == ['Dark Matter']


def test_rating_range_skips_unrated_items(mixed):
	found = titles(mixed.search(QueryDescriptor(min_rating=0.0)))
	assert 'Dated Only' not in found
	assert 'Old Westerns' not in found
	assert titles(mixed.search(QueryDescriptor(min_rating=7.0, max_rating=8.0))) == ['Mid Decade', 'Dark Matter']


def test_kind_narrows_candidates(mixed):
	assert titles(mixed.search(QueryDescriptor(kind=ContentKind.SERIES))) == ['Dark Matter', 'Old Westerns']
	assert titles(mixed.search(QueryDescriptor(kind=ContentKind.MOVIE, genre=Genre.WESTERN))) == ['Old Timer']
	assert titles(mixed.search(QueryDescriptor(genre=Genre.WESTERN))) == ['Old Timer', 'Old Westerns']


def test_text_matches_titles_case_insensitively(mixed):
	assert titles(mixed.search(QueryDescriptor(query='OLD'))) == ['Old Timer', 'Old Westerns']
	# an explicit title wins over the free-text query
	assert titles(mixed.search(QueryDescriptor(query='old', title='matter'))) == ['Dark Matter']
	# blank text adds no constraint
	assert len(mixed.search(QueryDescriptor(query='   '))) == 6


def test_all_constraints_are_combined(mixed):
	descriptor = QueryDescriptor(query='d', genre=Genre.ACTION, min_year=2000, min_rating=7.5)
	assert titles(mixed.search(descriptor)) == ['Mid Decade']


def test_same_id_in_both_stores_is_kept_twice():
	catalog = ContentCatalog()
	movie = catalog.save(Movie(title='Twin', release_year=2000))
	series = catalog.save(Series(title='Twin', release_year=2000))
	assert movie.id == series.id == 1

	engine = SearchEngine(catalog)
	assert len(engine.search(QueryDescriptor(title='twin'))) == 2


def test_search_does_not_mutate_the_store(mixed):
	results = mixed.search(QueryDescriptor(genre=Genre.ACTION))
	results[0].genres.clear()
	results[0].title = 'Mutated'
	assert titles(mixed.search(QueryDescriptor(genre=Genre.ACTION))) == ['Mid Decade', 'Undated', 'Dated Only']


def test_search_text_parses_natural_language(mixed):
	assert titles(mixed.search_text('sci-fi series')) == ['Dark Matter']
	assert titles(mixed.search_text('action movies from the 2000s')) == ['Mid Decade', 'Dated Only']
	with pytest.raises(ValueError):
		mixed.search_text('  ')
