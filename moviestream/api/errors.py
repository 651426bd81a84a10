"""
Domain errors of the catalog.

Every error carries the HTTP status it maps to; a single exception handler in
main.py turns them into `{"detail": message}` responses.
"""
from fastapi import status


class CatalogError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MovieNotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, movie_id: str):
        super().__init__("Movie not found")
        self.movie_id = movie_id


class UserNotFound(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self):
        super().__init__("User not found.")


class AlreadyReviewed(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self):
        super().__init__("You already reviewed this movie")


class InvalidInput(CatalogError, ValueError):
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT


class ReviewConflict(CatalogError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, attempts: int):
        super().__init__(
            f"The movie was modified concurrently and the review could not be saved "
            f"after {attempts} attempts. Please try again."
        )


class PermissionDenied(CatalogError):
    status_code = status.HTTP_403_FORBIDDEN
