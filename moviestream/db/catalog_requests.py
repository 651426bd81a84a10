import os
import uuid
import logging

from dataclasses import dataclass, fields
from math import ceil
from typing import Iterable, List, Mapping, Optional, Any

from sqlalchemy import select, func, delete, and_, true
from sqlalchemy.orm import Session

from dotenv import load_dotenv

from moviestream.api.errors import MovieNotFound, InvalidInput
from moviestream.db.models.movies import Movie, Review
from moviestream.db.models.users import liked_movies


load_dotenv()

# Catalog settings
MOVIES_PAGE_SIZE = int(os.getenv("MOVIES_PAGE_SIZE", "2"))          # movies per listing page
RANDOM_SAMPLE_SIZE = int(os.getenv("RANDOM_SAMPLE_SIZE", "8"))      # default size of the random view
MAX_RANDOM_SAMPLE_SIZE = 100
MAX_PAGE_NUMBER = 1_000_000                                         # larger pageNumber values fall back to page 1

# Numeric filters must fit a 32 bit SQL INTEGER
MIN_SQL_INT, MAX_SQL_INT = -2**31, 2**31 - 1

# Fields a client may set when a movie is created or imported
MOVIE_INPUT_FIELDS = (
    "name",
    "description",
    "title_image",
    "image",
    "video",
    "category",
    "language",
    "year",
    "time",
)

# Define logger for logging
logger = logging.getLogger(__name__)


@dataclass
class MovieFilters:
    """Raw listing filters as they arrive in the query string. Empty means no constraint."""
    category: Optional[str] = None
    time: Optional[str] = None
    language: Optional[str] = None
    rate: Optional[str] = None
    year: Optional[str] = None
    search: Optional[str] = None

    def supplied(self) -> dict:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) not in (None, "")
        }


@dataclass
class MoviePage:
    movies: List[Movie]
    page: int
    pages: int
    total_movies: int


def parse_page_number(raw: Optional[str]) -> int:
    '''
    Turns the pageNumber query value into a page index. Absent, non-numeric,
    non-positive or absurdly large values (above MAX_PAGE_NUMBER) fall back to
    the first page.
    '''
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return page if 1 <= page <= MAX_PAGE_NUMBER else 1


def _parse_int(field: str, raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise InvalidInput(f"Filter '{field}' must be an integer, got '{raw}'.")
    if not MIN_SQL_INT <= value <= MAX_SQL_INT:
        raise InvalidInput(f"Filter '{field}' is out of range, got '{raw}'.")
    return value


def _parse_float(field: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError:
        raise InvalidInput(f"Filter '{field}' must be a number, got '{raw}'.")


def build_movie_filters(filters: MovieFilters) -> list:
    '''
    Builds one WHERE clause per supplied filter. The clauses are meant to be
    AND-ed; an empty list means the whole collection.

    Parameters
    ----------
    filters: MovieFilters
        The raw filter values from the request.

    Returns
    -------
    clauses: list
        SQLAlchemy boolean expressions.
    '''
    supplied = filters.supplied()
    clauses = []

    if "category" in supplied:
        clauses.append(Movie.category == supplied["category"])
    if "language" in supplied:
        clauses.append(Movie.language == supplied["language"])
    if "time" in supplied:
        clauses.append(Movie.time == _parse_int("time", supplied["time"]))
    if "year" in supplied:
        clauses.append(Movie.year == _parse_int("year", supplied["year"]))
    if "rate" in supplied:
        clauses.append(Movie.rate == _parse_float("rate", supplied["rate"]))
    if "search" in supplied:
        # Case-insensitive substring match, LIKE wildcards in the input are literal
        clauses.append(Movie.name.icontains(supplied["search"], autoescape=True))

    return clauses


def list_movies(
    db: Session,
    filters: MovieFilters,
    page_number: Optional[str] = None,
    page_size: int = MOVIES_PAGE_SIZE,
) -> MoviePage:
    '''
    Returns one page of the movies matching all supplied filters, newest first.

    Parameters
    ----------
    db: Session
        Open SQLAlchemy session.
    filters: MovieFilters
        Exact match on category, time, language, rate and year plus a
        case-insensitive name search.
    page_number: str, optional
        Requested page (1-based), as sent by the client.
    page_size: int
        Number of movies per page.

    Returns
    -------
    MoviePage
        The movies of the page, the page number, the total page count and the
        total number of matches.
    '''
    if page_size < 1:
        raise ValueError("page_size must be > 0")

    page = parse_page_number(page_number)
    condition = and_(true(), *build_movie_filters(filters))

    total = db.scalar(select(func.count()).select_from(Movie).where(condition)) or 0

    stmt = (
        select(Movie)
        .where(condition)
        .order_by(Movie.created_at.desc(), Movie.id.desc())     # id keeps pages disjoint on equal timestamps
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    movies = list(db.scalars(stmt))

    return MoviePage(
        movies=movies,
        page=page,
        pages=ceil(total / page_size),
        total_movies=total,
    )


def get_movie_by_id(db: Session, movie_id: str) -> Movie:
    '''
    Loads a movie by its id. Raises MovieNotFound for unknown or malformed ids.
    '''
    try:
        key = uuid.UUID(str(movie_id)).hex
    except ValueError:
        raise MovieNotFound(movie_id)

    movie = db.get(Movie, key)
    if movie is None:
        raise MovieNotFound(movie_id)
    return movie


def get_top_rated(db: Session) -> List[Movie]:
    """All movies, highest rate first."""
    return list(db.scalars(select(Movie).order_by(Movie.rate.desc())))


def get_random_sample(db: Session, size: int = RANDOM_SAMPLE_SIZE) -> List[Movie]:
    '''
    Draws `size` distinct movies at random. Returns the whole collection (in
    random order) if it holds fewer movies than requested.
    '''
    if size < 1 or size > MAX_RANDOM_SAMPLE_SIZE:
        raise InvalidInput(f"Sample size must be between 1 and {MAX_RANDOM_SAMPLE_SIZE}.")

    stmt = select(Movie).order_by(func.random()).limit(size)
    return list(db.scalars(stmt))


def _movie_from_record(record: Mapping[str, Any]) -> Movie:
    values = {key: record.get(key) for key in MOVIE_INPUT_FIELDS if record.get(key) is not None}
    if not values.get("name"):
        raise InvalidInput("Every movie needs a name.")
    # Aggregates start empty, they are only ever derived from submitted reviews
    return Movie(**values, rate=0.0, number_of_reviews=0)


def create_movie(db: Session, record: Mapping[str, Any]) -> Movie:
    """Adds a single movie to the catalog."""
    movie = _movie_from_record(record)
    db.add(movie)
    db.commit()
    db.refresh(movie)
    logger.info("Created movie %s (%s).", movie.id, movie.name)
    return movie


def import_movies(db: Session, records: Iterable[Mapping[str, Any]]) -> List[Movie]:
    '''
    Replaces the whole catalog with the given records in one transaction.
    Reviews and favourites of the replaced movies are removed with them.

    Parameters
    ----------
    db: Session
        Open SQLAlchemy session.
    records: Iterable[Mapping]
        Movie fields keyed by their python names (see MOVIE_INPUT_FIELDS).

    Returns
    -------
    movies: List[Movie]
        The newly stored movies.
    '''
    movies = [_movie_from_record(record) for record in records]

    try:
        db.execute(delete(liked_movies))
        db.execute(delete(Review))
        db.execute(delete(Movie))
        db.add_all(movies)
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Movie import failed, catalog left unchanged.")
        raise

    logger.info("Imported %d movies, previous catalog replaced.", len(movies))
    return movies
