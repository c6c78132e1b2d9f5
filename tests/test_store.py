"""
Unit tests for EntityStore and ReadWriteLock: ids, uniqueness, copies and concurrency.
"""

import threading

import pytest

from film_catalog.catalog import ContentStore
from film_catalog.errors import DuplicateEntryError, InvalidEntityError, NotFoundError
from film_catalog.models import Actor, Genre, Movie, Series
from film_catalog.store import ReadWriteLock


@pytest.fixture
def movies():
	return ContentStore('movies', Movie)


def test_ids_are_positive_unique_and_never_reused(movies):
	first = movies.save(Movie(title='One'))
	second = movies.save(Movie(title='Two'))
	assert first.id == 1
	assert second.id == 2

	assert movies.delete(second.id) is True
	third = movies.save(Movie(title='Three'))
	assert third.id == 3
	assert movies.count() == 2
	assert [m.id for m in movies.get_all()] == [1, 3]


def test_count_tracks_surviving_records(movies):
	ids = [movies.save(Movie(title=f"Movie {n}")).id for n in range(10)]
	for entity_id in ids[::2]:
		movies.delete(entity_id)
	assert movies.count() == 5
	assert len(movies) == 5
	assert len(set(ids)) == 10


def test_delete_unknown_id_returns_false(movies):
	assert movies.delete(42) is False


def test_duplicate_title_is_case_insensitive_and_changes_nothing(movies):
	movies.save(Movie(title='The Matrix', release_year=1999))
	with pytest.raises(DuplicateEntryError) as exc:
		movies.save(Movie(title='the  MATRIX', release_year=2021))
	assert exc.value.entity == 'movies'
	assert exc.value.field == 'title'
	assert movies.count() == 1

	# a failed insert does not consume an id
	assert movies.save(Movie(title='Speed')).id == 2


def test_different_titles_with_identical_fields_are_accepted(movies):
	movies.save(Movie(title='Alpha', release_year=2001, rating=7.0))
	movies.save(Movie(title='Beta', release_year=2001, rating=7.0))
	assert movies.count() == 2


def test_update_requires_existing_id(movies):
	with pytest.raises(NotFoundError):
		movies.save(Movie(title='Ghost', id=99))
	assert movies.count() == 0


def test_update_replaces_record_and_reindexes_title(movies):
	saved = movies.save(Movie(title='Old Title', rating=6.0))
	saved.title = 'New Title'
	saved.rating = 7.5
	updated = movies.save(saved)

	assert updated.id == saved.id
	assert movies.get_by_id(saved.id).rating == 7.5
	assert movies.find_by_exact_title('old title') is None
	# the released title is free again
	movies.save(Movie(title='Old Title'))
	assert movies.count() == 2


def test_update_keeping_own_title_is_not_a_duplicate(movies):
	saved = movies.save(Movie(title='Heat'))
	saved.rating = 8.3
	assert movies.save(saved).rating == 8.3


def test_update_colliding_with_another_record_fails(movies):
	movies.save(Movie(title='Heat'))
	other = movies.save(Movie(title='Speed'))
	other.title = 'HEAT'
	with pytest.raises(DuplicateEntryError):
		movies.save(other)
	assert movies.get_by_id(other.id).title == 'Speed'


def test_check_raises_like_save_without_storing(movies):
	saved = movies.save(Movie(title='Heat'))

	with pytest.raises(DuplicateEntryError):
		movies.check(Movie(title='heat'))
	with pytest.raises(InvalidEntityError):
		movies.check(Movie(title='  '))
	with pytest.raises(NotFoundError):
		movies.check(Movie(title='Ghost', id=42))
	movies.check(saved)
	movies.check(Movie(title='Speed'))
	assert movies.count() == 1


def test_invalid_records_are_rejected(movies):
	with pytest.raises(InvalidEntityError):
		movies.save(Movie(title='  '))
	with pytest.raises(InvalidEntityError):
		movies.save(Movie(title='Too Good', rating=10.5))
	with pytest.raises(InvalidEntityError):
		movies.save(Series(title='Wrong Store'))
	assert movies.count() == 0


def test_get_all_is_a_snapshot_not_a_view(movies):
	movies.save(Movie(title='Alpha', genres={Genre.ACTION}))
	snapshot = movies.get_all()

	movies.save(Movie(title='Beta'))
	snapshot[0].genres.add(Genre.DRAMA)
	snapshot[0].title = 'Changed'

	assert len(snapshot) == 1
	stored = movies.get_by_id(1)
	assert stored.title == 'Alpha'
	assert stored.genres == {Genre.ACTION}


def test_saved_argument_is_copied(movies):
	movie = Movie(title='Alpha', cast=[Actor(first_name='Keanu', last_name='Reeves')])
	saved = movies.save(movie)
	movie.cast.clear()
	saved.cast.clear()
	assert len(movies.get_by_id(saved.id).cast) == 1
	# the caller's object is left untouched
	assert movie.id == 0


def test_concurrent_saves_with_same_title_have_one_winner(movies):
	threads_count = 16
	barrier = threading.Barrier(threads_count)
	successes, duplicates = [], []

	def worker(n):
		barrier.wait()
		try:
			successes.append(movies.save(Movie(title='Same Title', release_year=2000 + n)))
		except DuplicateEntryError:
			duplicates.append(n)

	threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
	for t in threads:
		t.start()
	for t in threads:
		t.join()

	assert len(successes) == 1
	assert len(duplicates) == threads_count - 1
	assert movies.count() == 1


def test_concurrent_distinct_saves_get_distinct_ids(movies):
	threads_count = 8
	per_thread = 25

	def worker(n):
		for i in range(per_thread):
			movies.save(Movie(title=f"T{n}-{i}"))

	threads = [threading.Thread(target=worker, args=(n,)) for n in range(threads_count)]
	for t in threads:
		t.start()
	for t in threads:
		t.join()

	ids = [m.id for m in movies.get_all()]
	assert len(ids) == threads_count * per_thread
	assert len(set(ids)) == len(ids)


def test_readers_share_the_lock():
	lock = ReadWriteLock()
	lock.acquire_read()
	second_reader_in = threading.Event()

	def reader():
		with lock.read_locked():
			second_reader_in.set()

	t = threading.Thread(target=reader)
	t.start()
	assert second_reader_in.wait(timeout=2)
	t.join()
	lock.release_read()


def test_writer_waits_for_readers():
	lock = ReadWriteLock()
	lock.acquire_read()
	writer_in = threading.Event()

	def writer():
		with lock.write_locked():
			writer_in.set()

	t = threading.Thread(target=writer)
	t.start()
	assert not writer_in.wait(timeout=0.2)
	lock.release_read()
	assert writer_in.wait(timeout=2)
	t.join()


def test_waiting_writer_blocks_new_readers():
	lock = ReadWriteLock()
	lock.acquire_read()
	writer_in = threading.Event()
	late_reader_in = threading.Event()

	def writer():
		with lock.write_locked():
			writer_in.set()

	def late_reader():
		with lock.read_locked():
			late_reader_in.set()

	w = threading.Thread(target=writer)
	w.start()
	# give the writer time to start waiting
	while not lock._waiting_writers:
		threading.Event().wait(0.01)
	r = threading.Thread(target=late_reader)
	r.start()
	assert not late_reader_in.wait(timeout=0.2)

	lock.release_read()
	assert writer_in.wait(timeout=2)
	assert late_reader_in.wait(timeout=2)
	w.join()
	r.join()
