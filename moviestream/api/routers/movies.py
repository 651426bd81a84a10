from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from sqlalchemy.orm import Session

from moviestream.db.database_session import get_db
from moviestream.db.models.users import User
from moviestream.db.catalog_requests import (
    MovieFilters,
    RANDOM_SAMPLE_SIZE,
    MAX_RANDOM_SAMPLE_SIZE,
    create_movie,
    get_movie_by_id,
    get_random_sample,
    get_top_rated,
    import_movies,
    list_movies,
)
from moviestream.db.review_requests import Reviewer, submit_review
from moviestream.api.errors import CatalogError
from moviestream.api.role import UserRole
from moviestream.api.security import check_user_authorization, get_reviewer
from moviestream.api.schemas import (
    MovieCreate,
    MovieResponse,
    MoviesPageResponse,
    ReviewCreate,
    ReviewSubmittedResponse,
)
from moviestream.observability.metrics import CATALOG_REQUESTS


router = APIRouter(prefix="/movies", tags=["movies"])


def _count(endpoint: str, result: str) -> None:
    CATALOG_REQUESTS.labels(endpoint=endpoint, result=result).inc()


#___________________________________________________________________________________________________
# Public routes
#___________________________________________________________________________________________________

@router.get("", response_model=MoviesPageResponse)
def get_movies(
    category: Optional[str] = Query(None),
    time: Optional[str] = Query(None, description="Runtime in minutes"),
    language: Optional[str] = Query(None),
    rate: Optional[str] = Query(None),
    year: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Case-insensitive part of the movie name"),
    page_number: Optional[str] = Query(None, alias="pageNumber"),
    db: Session = Depends(get_db),
):
    """
    Lists the movies matching all given filters, newest first, one page at a time.

    **Parameters**:\n
    `category`, `time`, `language`, `rate`, `year` (query): exact match filters\n
    `search` (query): case-insensitive substring of the name\n
    `pageNumber` (query): page to return, defaults to 1\n

    **Returns**:\n
    `MoviesPageResponse`(response_model):
    - `movies`: the movies of the page
    - `page`: the returned page number
    - `pages`: total number of pages
    - `totalMovies`: total number of matching movies
    """
    filters = MovieFilters(
        category=category,
        time=time,
        language=language,
        rate=rate,
        year=year,
        search=search,
    )
    try:
        page = list_movies(db, filters, page_number)
    except CatalogError:
        _count("list_movies", "failure")
        raise

    _count("list_movies", "success")
    return MoviesPageResponse(
        movies=[MovieResponse.model_validate(movie) for movie in page.movies],
        page=page.page,
        pages=page.pages,
        total_movies=page.total_movies,
    )


@router.get("/rated/top", response_model=List[MovieResponse])
def get_top_rated_movies(db: Session = Depends(get_db)):
    """Returns all movies sorted by rate, best first."""
    movies = get_top_rated(db)
    _count("top_rated", "success")
    return [MovieResponse.model_validate(movie) for movie in movies]


@router.get("/random/all", response_model=List[MovieResponse])
def get_random_movies(
    size: int = Query(RANDOM_SAMPLE_SIZE, ge=1, le=MAX_RANDOM_SAMPLE_SIZE, description="Number of movies to draw"),
    db: Session = Depends(get_db),
):
    """Returns `size` distinct movies drawn at random (all movies if there are fewer)."""
    movies = get_random_sample(db, size)
    _count("random", "success")
    return [MovieResponse.model_validate(movie) for movie in movies]


@router.get("/{movie_id}", response_model=MovieResponse)
def get_movie(movie_id: str, db: Session = Depends(get_db)):
    """Returns a single movie with its reviews, 404 if the id is unknown or malformed."""
    try:
        movie = get_movie_by_id(db, movie_id)
    except CatalogError:
        _count("get_movie", "failure")
        raise

    _count("get_movie", "success")
    return MovieResponse.model_validate(movie)


#___________________________________________________________________________________________________
# Private routes
#___________________________________________________________________________________________________

@router.post(
    "/{movie_id}/reviews",
    response_model=ReviewSubmittedResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_movie_review(
    movie_id: str,
    review: ReviewCreate,
    db: Session = Depends(get_db),
    reviewer: Reviewer = Depends(get_reviewer),
):
    """
    Adds the logged in user's review to a movie and recomputes the movie's rate.
    Each user can review a movie only once.

    **Parameters**:\n
    `movie_id` (path): Id of the reviewed movie\n
    `review` (ReviewCreate): `rating` (1-5) and `comment`\n

    **Returns**:\n
    `ReviewSubmittedResponse`(response_model): confirmation with the new `rate` and `numberOfReviews`
    """
    movie = submit_review(db, movie_id, reviewer, review.rating, review.comment)

    return ReviewSubmittedResponse(
        message="Review added",
        movie_id=movie.id,
        rate=movie.rate,
        number_of_reviews=movie.number_of_reviews,
    )


#___________________________________________________________________________________________________
# Admin routes
#___________________________________________________________________________________________________

@router.post("", response_model=MovieResponse, status_code=status.HTTP_201_CREATED)
def create_new_movie(
    payload: MovieCreate,
    db: Session = Depends(get_db),
    _: User = Depends(check_user_authorization(UserRole.ADMIN)),
):
    """
    Creates a single movie without reviews.

    `Requires:` Admin privileges
    """
    movie = create_movie(db, payload.model_dump())
    return MovieResponse.model_validate(movie)


@router.post("/import", response_model=List[MovieResponse], status_code=status.HTTP_201_CREATED)
def import_all_movies(
    payload: List[MovieCreate],
    db: Session = Depends(get_db),
    _: User = Depends(check_user_authorization(UserRole.ADMIN)),
):
    """
    Replaces the whole catalog (movies, their reviews and favourites) with the
    given movies.

    **Parameters**:\n
    `payload` (list of MovieCreate): the new catalog\n

    **Returns**:\n
    The stored movies.

    `Requires:` Admin privileges
    """
    movies = import_movies(db, [movie.model_dump() for movie in payload])
    return [MovieResponse.model_validate(movie) for movie in movies]
