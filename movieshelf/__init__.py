"""movieshelf: a small SQLite-backed store for Movie records."""

from movieshelf.db.movie_store import MovieStore, open
from movieshelf.models.movie import Movie

__all__ = ["Movie", "MovieStore", "open"]
