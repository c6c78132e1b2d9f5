"""
Built-in fallback records.
Used when a source yields no records, so the catalog is never empty.
Each function returns fresh objects on every call.
"""

from datetime import date
from typing import List

from .models import (
	Account,
	Actor,
	Director,
	Episode,
	Ethnicity,
	Gender,
	Genre,
	Movie,
	Season,
	Series,
)

# Marks an account that cannot log in until a password is set
UNUSABLE_PASSWORD = '!'


def build_seasons(season_count: int, episodes_per_season: int) -> List[Season]:
	"""Numbered seasons, each holding `episodes_per_season` numbered episodes."""
	seasons = []
	for number in range(1, max(season_count, 0) + 1):
		episodes = [Episode(number=n, title=f"Episode {n}") for n in range(1, episodes_per_season + 1)]
		seasons.append(Season(number=number, title=f"Season {number}", episodes=episodes))
	return seasons


def _actor(first, last, born, gender, nationality):
	return Actor(first_name=first, last_name=last, birth_date=born, gender=gender, nationality=nationality)


def sample_actors() -> List[Actor]:
	return [
		_actor('Tim', 'Robbins', date(1958, 10, 16), Gender.MALE, Ethnicity.AMERICAN),
		_actor('Morgan', 'Freeman', date(1937, 6, 1), Gender.MALE, Ethnicity.AMERICAN),
		_actor('Marlon', 'Brando', date(1924, 4, 3), Gender.MALE, Ethnicity.AMERICAN),
		_actor('Al', 'Pacino', date(1940, 4, 25), Gender.MALE, Ethnicity.AMERICAN),
		_actor('Christian', 'Bale', date(1974, 1, 30), Gender.MALE, Ethnicity.BRITISH),
		_actor('Heath', 'Ledger', date(1979, 4, 4), Gender.MALE, Ethnicity.AUSTRALIAN),
		_actor('Bryan', 'Cranston', date(1956, 3, 7), Gender.MALE, Ethnicity.AMERICAN),
		_actor('Aaron', 'Paul', date(1979, 8, 27), Gender.MALE, Ethnicity.AMERICAN),
		_actor('Emilia', 'Clarke', date(1986, 10, 23), Gender.FEMALE, Ethnicity.BRITISH),
		_actor('Kit', 'Harington', date(1986, 12, 26), Gender.MALE, Ethnicity.BRITISH),
		_actor('Peter', 'Dinklage', date(1969, 6, 11), Gender.MALE, Ethnicity.AMERICAN),
		_actor('Millie Bobby', 'Brown', date(2004, 2, 19), Gender.FEMALE, Ethnicity.BRITISH),
		_actor('Finn', 'Wolfhard', date(2002, 12, 23), Gender.MALE, Ethnicity.CANADIAN),
	]


def sample_directors() -> List[Director]:
	return [
		Director(
			first_name='Frank', last_name='Darabont', birth_date=date(1959, 1, 28),
			gender=Gender.MALE, nationality=Ethnicity.AMERICAN,
			notable_works=['The Shawshank Redemption', 'The Green Mile'],
			best_works=['The Shawshank Redemption'],
		),
		Director(
			first_name='Francis Ford', last_name='Coppola', birth_date=date(1939, 4, 7),
			gender=Gender.MALE, nationality=Ethnicity.AMERICAN,
			notable_works=['The Godfather', 'Apocalypse Now'],
			best_works=['The Godfather'],
		),
		Director(
			first_name='Christopher', last_name='Nolan', birth_date=date(1970, 7, 30),
			gender=Gender.MALE, nationality=Ethnicity.BRITISH,
			notable_works=['The Dark Knight', 'Inception', 'Oppenheimer'],
			best_works=['The Dark Knight'],
		),
	]


def sample_movies() -> List[Movie]:
	actors = {a.full_name: a for a in sample_actors()}
	return [
		Movie(
			title='The Shawshank Redemption', release_year=1994, genres={Genre.DRAMA},
			rating=9.3, director='Frank Darabont', duration_minutes=142,
			cast=[actors['Tim Robbins'], actors['Morgan Freeman']],
		),
		Movie(
			title='The Godfather', release_year=1972, genres={Genre.CRIME, Genre.DRAMA},
			rating=9.2, director='Francis Ford Coppola', duration_minutes=175,
			cast=[actors['Marlon Brando'], actors['Al Pacino']],
		),
		Movie(
			title='The Dark Knight', release_year=2008, genres={Genre.ACTION, Genre.CRIME, Genre.DRAMA},
			rating=9.0, director='Christopher Nolan', duration_minutes=152,
			cast=[actors['Christian Bale'], actors['Heath Ledger']],
		),
	]


def sample_series(episodes_per_season: int = 10) -> List[Series]:
	actors = {a.full_name: a for a in sample_actors()}
	return [
		Series(
			title='Breaking Bad', release_year=2008, end_year=2013,
			genres={Genre.CRIME, Genre.DRAMA, Genre.THRILLER}, rating=9.5, director='Vince Gilligan',
			seasons=build_seasons(5, episodes_per_season),
			cast=[actors['Bryan Cranston'], actors['Aaron Paul']],
		),
		Series(
			title='Game of Thrones', release_year=2011, end_year=2019,
			genres={Genre.FANTASY, Genre.DRAMA, Genre.ADVENTURE}, rating=9.2, director='David Benioff',
			seasons=build_seasons(8, episodes_per_season),
			cast=[actors['Emilia Clarke'], actors['Kit Harington'], actors['Peter Dinklage']],
		),
		Series(
			title='Stranger Things', release_year=2016, end_year=None,
			genres={Genre.SCI_FI, Genre.HORROR, Genre.MYSTERY}, rating=8.7, director='The Duffer Brothers',
			seasons=build_seasons(4, episodes_per_season),
			cast=[actors['Millie Bobby Brown'], actors['Finn Wolfhard']],
		),
	]


def sample_accounts() -> List[Account]:
	return [
		Account(username='admin', email='admin@example.com', password_hash=UNUSABLE_PASSWORD, display_name='Administrator'),
		Account(username='guest', email='guest@example.com', password_hash=UNUSABLE_PASSWORD, display_name='Guest'),
	]
