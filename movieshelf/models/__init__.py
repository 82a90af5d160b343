"""Domain models for the movie store."""

from movieshelf.models.movie import Movie

__all__ = ["Movie"]
