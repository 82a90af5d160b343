#!/usr/bin/env python3
"""Inspect and edit a movie store from the command line."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from movieshelf.config import Settings, settings
from movieshelf.db.movie_store import MovieStore
from movieshelf.models.movie import Movie


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Manage a movie store")
    parser.add_argument("--name", default="movies", help="Store name (default: movies)")
    parser.add_argument("--data-dir", type=str, help="Override the data directory")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("count", help="Print the number of stored movies")
    sub.add_parser("list", help="List every stored movie")
    find = sub.add_parser("find", help="List up to 30 movies from one year")
    find.add_argument("--year", type=int, required=True)
    add = sub.add_parser("add", help="Store one movie")
    add.add_argument("--title", required=True)
    add.add_argument("--year", type=int, required=True)
    add.add_argument("--uuid", help="Identifier to keep (a fresh one is generated if invalid)")
    sub.add_parser("clear", help="Delete every stored movie")
    args = parser.parse_args(argv)

    config = Settings(MOVIESHELF_DATA_DIR=args.data_dir) if args.data_dir else settings
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    with MovieStore(args.name, settings=config) as store:
        if not store.is_open:
            print(f"Could not open store {args.name!r}: {store.last_error}")
            return 1

        if args.command == "count":
            print(store.count())
        elif args.command == "list":
            store.retrieve_all()
            _print_movies(store.movies)
        elif args.command == "find":
            _print_movies(store.find_by_year(args.year))
        elif args.command == "add":
            movie = Movie.create(args.title, args.year, args.uuid)
            store.insert([movie])
            print(f"Stored {movie}" if store.last_error is None else f"Failed: {store.last_error}")
        elif args.command == "clear":
            print("Deleted all movies" if store.delete_all() else f"Failed: {store.last_error}")

        return 0 if store.last_error is None else 1


def _print_movies(movies: list[Movie]) -> None:
    print(f"Total: {len(movies)}")
    for m in movies:
        print(f"  {str(m.uuid)[:8]} | {m.title[:40]:<40} | {m.year}")


if __name__ == "__main__":
    sys.exit(main())
