import os
import logging

from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from dotenv import load_dotenv

from moviestream.api.errors import AlreadyReviewed, InvalidInput, MovieNotFound, ReviewConflict
from moviestream.db.catalog_requests import get_movie_by_id
from moviestream.db.models.movies import Movie, Review
from moviestream.observability.metrics import REVIEW_SUBMISSIONS


load_dotenv()

# Review settings
MIN_RATING = 1
MAX_RATING = 5
MAX_COMMENT_LENGTH = 1000
REVIEW_WRITE_ATTEMPTS = int(os.getenv("REVIEW_WRITE_ATTEMPTS", "5"))   # optimistic write attempts per review

# Define logger for logging
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Reviewer:
    """Identity of an authenticated caller, snapshotted into the review."""
    user_id: int
    user_name: str
    user_image: Optional[str] = None


def average_rating(ratings: Sequence[int]) -> float:
    '''
    Mean of all ratings, 0.0 for a movie without reviews. Always recomputed
    from the full list so no rounding error accumulates between submissions.
    '''
    if not ratings:
        return 0.0
    return sum(ratings) / len(ratings)


def _validate_review(rating: int, comment: str) -> str:
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidInput("Rating must be an integer.")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise InvalidInput(f"Rating must be between {MIN_RATING} and {MAX_RATING}.")

    comment = (comment or "").strip()
    if not comment:
        raise InvalidInput("Comment must not be empty.")
    if len(comment) > MAX_COMMENT_LENGTH:
        raise InvalidInput(f"Comment must be at most {MAX_COMMENT_LENGTH} characters.")
    return comment


def _append_review(db: Session, movie_id: str, reviewer: Reviewer, rating: int, comment: str) -> Movie:
    '''
    One read-check-append-recompute-write pass. The commit fails with
    StaleDataError if another writer bumped the movie version in between, and
    with IntegrityError if the same user got a review in first.
    '''
    movie = get_movie_by_id(db, movie_id)

    if any(review.user_id == reviewer.user_id for review in movie.reviews):
        raise AlreadyReviewed()

    movie.reviews.append(
        Review(
            user_id=reviewer.user_id,
            user_name=reviewer.user_name,
            user_image=reviewer.user_image,
            rating=rating,
            comment=comment,
        )
    )
    movie.number_of_reviews = len(movie.reviews)
    movie.rate = average_rating([review.rating for review in movie.reviews])

    db.commit()
    return movie


def submit_review(
    db: Session,
    movie_id: str,
    reviewer: Reviewer,
    rating: int,
    comment: str,
    max_attempts: int = REVIEW_WRITE_ATTEMPTS,
) -> Movie:
    '''
    Adds the reviewer's review to a movie and recomputes the movie's rate and
    review count in the same transaction.

    Parameters
    ----------
    db: Session
        Open SQLAlchemy session, used exclusively by this call.
    movie_id: str
        Id of the reviewed movie.
    reviewer: Reviewer
        Authenticated author of the review.
    rating: int
        Rating between MIN_RATING and MAX_RATING.
    comment: str
        Non-empty review text.
    max_attempts: int
        How often a write that lost a race against a concurrent review is
        retried before giving up.

    Returns
    -------
    movie: Movie
        The updated movie.

    Raises
    ------
    InvalidInput, MovieNotFound, AlreadyReviewed, ReviewConflict
    '''
    if max_attempts < 1:
        raise ValueError("max_attempts must be > 0")

    try:
        comment = _validate_review(rating, comment)
    except InvalidInput:
        REVIEW_SUBMISSIONS.labels(result="invalid").inc()
        raise

    for attempt in range(1, max_attempts + 1):
        try:
            movie = _append_review(db, movie_id, reviewer, rating, comment)
        except StaleDataError:
            db.rollback()
            logger.warning(
                "Concurrent update on movie %s while adding review of user %s (attempt %d/%d).",
                movie_id, reviewer.user_id, attempt, max_attempts,
            )
            continue
        except IntegrityError:
            # Unique (movie_id, user_id) constraint -> a parallel request of this user won
            db.rollback()
            REVIEW_SUBMISSIONS.labels(result="already_reviewed").inc()
            raise AlreadyReviewed()
        except AlreadyReviewed:
            REVIEW_SUBMISSIONS.labels(result="already_reviewed").inc()
            raise
        except MovieNotFound:
            REVIEW_SUBMISSIONS.labels(result="not_found").inc()
            raise

        REVIEW_SUBMISSIONS.labels(result="created").inc()
        logger.info(
            "User %s reviewed movie %s, rate is now %.2f over %d reviews.",
            reviewer.user_id, movie.id, movie.rate, movie.number_of_reviews,
        )
        return movie

    REVIEW_SUBMISSIONS.labels(result="conflict").inc()
    logger.error("Giving up on review of user %s for movie %s after %d attempts.",
                 reviewer.user_id, movie_id, max_attempts)
    raise ReviewConflict(max_attempts)
