"""
Unit tests for the entity-specific stores: lookups, derived accessors, accounts, ratings and watchlists.
"""

from datetime import date

import pytest

from film_catalog.catalog import RatingStore, WatchlistStore, split_full_name
from film_catalog.errors import DuplicateEntryError, InvalidEntityError
from film_catalog.models import (
	Account,
	Actor,
	ContentKind,
	Director,
	Episode,
	Ethnicity,
	Movie,
	Rating,
	Season,
	Series,
)


def test_find_by_title_is_case_insensitive_substring(catalog):
	catalog.save(Movie(title='The Dark Knight', release_year=2008))
	catalog.save(Movie(title='Knight and Day', release_year=2010))
	catalog.save(Series(title='Knightfall', release_year=2017))

	assert [m.title for m in catalog.movies.find_by_title('KNIGHT')] == ['The Dark Knight', 'Knight and Day']
	assert [c.title for c in catalog.find_by_title('knight')] == ['The Dark Knight', 'Knight and Day', 'Knightfall']
	assert [c.title for c in catalog.find_by_title('knight', ContentKind.SERIES)] == ['Knightfall']
	assert catalog.find_by_title('') == []
	assert catalog.find_by_title(None) == []


def test_same_title_allowed_once_per_store(catalog):
	catalog.save(Movie(title='Fargo', release_year=1996))
	catalog.save(Series(title='Fargo', release_year=2014))
	assert catalog.count() == 2
	with pytest.raises(DuplicateEntryError):
		catalog.save(Movie(title='FARGO'))


def test_find_by_title_and_year(catalog):
	catalog.save(Movie(title='Heat', release_year=1995))
	assert catalog.find_by_title_and_year('heat', 1995, ContentKind.MOVIE).title == 'Heat'
	assert catalog.find_by_title_and_year('heat', 1986, ContentKind.MOVIE) is None
	assert catalog.find_by_title_and_year('heat', 1995, ContentKind.SERIES) is None


def test_store_for_any_kind_is_rejected(catalog):
	with pytest.raises(ValueError):
		catalog.store_for(ContentKind.ANY)


def test_total_episodes_tolerates_empty_seasons(catalog):
	series = Series(
		title='Uneven',
		seasons=[
			Season(number=1, episodes=[Episode(number=1), Episode(number=2)]),
			Season(number=2, episodes=[]),
			Season(number=3, episodes=[Episode(number=1)]),
		],
	)
	saved = catalog.save(series)
	assert catalog.total_episodes(saved) == 3
	assert catalog.episode_count(saved.id) == 3
	assert len(catalog.episodes(saved.id)) == 3
	assert catalog.episode_count(999) == 0
	assert catalog.total_episodes(Series(title='Empty')) == 0


def test_series_performers_are_deduplicated(catalog, people):
	lead = people.resolve_actor('Bryan Cranston')
	partner = people.resolve_actor('Aaron Paul')
	guest = people.resolve_actor('Bill Burr')
	series = Series(
		title='Breaking Bad',
		cast=[lead, partner],
		seasons=[
			Season(number=1, episodes=[Episode(number=1, cast=[lead, guest])]),
			Season(number=2, episodes=[Episode(number=1, cast=[guest, partner])]),
		],
	)
	saved = catalog.save(series)
	performers = catalog.series_performers(saved.id)
	assert [p.full_name for p in performers] == ['Bryan Cranston', 'Aaron Paul', 'Bill Burr']


def test_unsaved_performers_deduplicate_by_name(catalog):
	series = Series(
		title='Pilot Only',
		cast=[Actor(first_name='Ana', last_name='Costa')],
		seasons=[Season(number=1, episodes=[Episode(number=1, cast=[Actor(first_name='ana', last_name='COSTA')])])],
	)
	assert len(catalog.performers_of(series)) == 1


def test_find_by_full_name_is_case_insensitive(people):
	people.actors.save(Actor(first_name='Keanu', last_name='Reeves'))
	people.directors.save(Director(first_name='Lana', last_name='Wachowski'))

	assert people.actors.find_by_full_name('keanu', 'REEVES').first_name == 'Keanu'
	assert people.find_by_full_name('LANA', 'wachowski').last_name == 'Wachowski'
	assert people.find_by_full_name('Nobody', 'Here') is None


def test_resolve_actor_creates_once(people):
	first = people.resolve_actor('Millie Bobby Brown')
	again = people.resolve_actor('millie bobby brown')
	assert first.id == again.id
	assert first.first_name == 'Millie'
	assert first.last_name == 'Bobby Brown'
	assert people.actors.count() == 1
	assert people.resolve_actor('   ') is None


def test_namesakes_are_told_apart_by_birth_date(people):
	actor = people.actors.save(Actor(first_name='Chris', last_name='Evans', birth_date=date(1981, 6, 13)))
	presenter = people.actors.save(Actor(first_name='Chris', last_name='Evans', birth_date=date(1966, 4, 1)))

	assert actor.id != presenter.id
	assert people.actors.find_by_full_name('chris', 'evans').id == actor.id
	with pytest.raises(DuplicateEntryError):
		people.actors.save(Actor(first_name='CHRIS', last_name='evans', birth_date=date(1981, 6, 13)))

	people.actors.save(Actor(first_name='Sam', last_name='Rivera'))
	with pytest.raises(DuplicateEntryError):
		people.actors.save(Actor(first_name='Sam', last_name='Rivera'))
	assert people.actors.count() == 3


def test_split_full_name():
	assert split_full_name('Zendaya') == ('Zendaya', '')
	assert split_full_name(' Song  Kang-ho ') == ('Song', 'Kang-ho')


def test_people_by_nationality(people):
	people.actors.save(Actor(first_name='Song', last_name='Kang-ho', nationality=Ethnicity.KOREAN))
	people.actors.save(Actor(first_name='Keanu', last_name='Reeves', nationality=Ethnicity.CANADIAN))
	people.directors.save(Director(first_name='Bong', last_name='Joon-ho', nationality=Ethnicity.KOREAN))
	assert sorted(p.full_name for p in people.by_nationality(Ethnicity.KOREAN)) == ['Bong Joon-ho', 'Song Kang-ho']


def test_deleting_a_cast_member_leaves_the_movie_intact(catalog, people):
	actor = people.resolve_actor('Tim Robbins')
	movie = catalog.save(Movie(title='The Shawshank Redemption', release_year=1994, cast=[actor]))

	assert people.actors.delete(actor.id) is True
	stored = catalog.movies.get_by_id(movie.id)
	assert stored is not None
	assert [a.id for a in stored.cast] == [actor.id]
	assert people.actors.get_by_id(actor.id) is None


def test_filmography_covers_cast_and_director(catalog, people):
	nolan = people.directors.save(Director(first_name='Christopher', last_name='Nolan'))
	bale = people.resolve_actor('Christian Bale')
	catalog.save(Movie(title='The Prestige', release_year=2006, director='Christopher Nolan', cast=[bale]))
	catalog.save(Movie(title='Inception', release_year=2010, director='Christopher Nolan'))
	catalog.save(Movie(title='American Psycho', release_year=2000, cast=[bale]))

	assert sorted(c.title for c in catalog.filmography(nolan)) == ['Inception', 'The Prestige']
	assert sorted(c.title for c in catalog.filmography(bale)) == ['American Psycho', 'The Prestige']


def test_account_uniqueness(accounts):
	accounts.save(Account(username='cinephile', email='ana@example.com'))
	with pytest.raises(DuplicateEntryError) as exc:
		accounts.save(Account(username='Cinephile', email='other@example.com'))
	assert exc.value.field == 'username'
	with pytest.raises(DuplicateEntryError) as exc:
		accounts.save(Account(username='someone', email='ANA@example.com'))
	assert exc.value.field == 'email'
	assert accounts.count() == 1


def test_account_lookups(accounts):
	accounts.save(Account(username='cinephile', email='Ana@Example.com', password_hash='hash'))
	assert accounts.find_by_username('cinephile').email == 'Ana@Example.com'
	assert accounts.find_by_username('CINEPHILE') is None
	assert accounts.find_by_email('ana@example.COM').username == 'cinephile'
	assert accounts.find_by_email('') is None


def test_account_requires_username_and_email(accounts):
	with pytest.raises(InvalidEntityError):
		accounts.save(Account(username='', email='a@b.c'))
	with pytest.raises(InvalidEntityError):
		accounts.save(Account(username='nomail', email='not-an-email'))


def test_rating_upsert_keeps_one_per_pair():
	ratings = RatingStore()
	first = ratings.rate(1, 10, 7.0)
	second = ratings.rate(1, 10, 9.0, review='Better on rewatch')

	assert first.id == second.id
	assert ratings.count() == 1
	stored = ratings.find_rating(1, 10)
	assert stored.score == 9.0
	assert stored.review == 'Better on rewatch'
	assert stored.created_at == first.created_at
	assert stored.updated_at >= first.updated_at


def test_rating_duplicate_pair_via_save_is_rejected():
	ratings = RatingStore()
	ratings.save(Rating(account_id=1, content_id=5, score=6.0))
	with pytest.raises(DuplicateEntryError):
		ratings.save(Rating(account_id=1, content_id=5, score=8.0))


def test_movie_and_series_ratings_are_separate():
	ratings = RatingStore()
	ratings.rate(1, 1, 8.0, ContentKind.MOVIE)
	ratings.rate(1, 1, 4.0, ContentKind.SERIES)
	ratings.rate(2, 1, 6.0, ContentKind.MOVIE)

	assert ratings.count() == 3
	assert ratings.average_for(1, ContentKind.MOVIE) == 7.0
	assert ratings.average_for(1, ContentKind.SERIES) == 4.0
	assert ratings.average_for(2, ContentKind.MOVIE) is None
	assert len(ratings.for_account(1)) == 2


def test_rating_score_range():
	ratings = RatingStore()
	with pytest.raises(InvalidEntityError):
		ratings.rate(1, 1, 11.0)
	with pytest.raises(InvalidEntityError):
		ratings.rate(1, 1, 5.0, ContentKind.ANY)


def test_watchlist_lists_content_once_per_account():
	watchlists = WatchlistStore()
	watchlists.add(1, 10)
	watchlists.add(1, 10, ContentKind.SERIES, notes='after the finale')
	watchlists.add(2, 10)

	with pytest.raises(DuplicateEntryError):
		watchlists.add(1, 10)
	assert watchlists.count() == 3
	assert watchlists.contains(1, 10, ContentKind.SERIES)
	assert not watchlists.contains(1, 11)
	assert [(e.content_kind, e.notes) for e in watchlists.for_account(1)] == [
		(ContentKind.SERIES, 'after the finale'),
		(ContentKind.MOVIE, None),
	]


def test_watchlist_watched_flag_and_removal():
	watchlists = WatchlistStore()
	added = watchlists.add(1, 10)

	watched = watchlists.mark_watched(1, 10)
	assert watched.watched is True
	assert watched.added_at == added.added_at
	assert watchlists.mark_watched(1, 99) is None

	assert watchlists.remove(2, 10) is False
	assert watchlists.remove(1, 10) is True
	assert watchlists.remove(1, 10) is False
	assert watchlists.for_account(1) == []


def test_watchlist_rejects_bad_references():
	watchlists = WatchlistStore()
	with pytest.raises(InvalidEntityError):
		watchlists.add(1, 10, ContentKind.ANY)
	with pytest.raises(InvalidEntityError):
		watchlists.add(0, 10)
