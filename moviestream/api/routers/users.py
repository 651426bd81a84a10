from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from sqlalchemy.orm import Session

from moviestream.db.database_session import get_db
from moviestream.db.models.users import User
from moviestream.db.catalog_requests import get_movie_by_id
from moviestream.api.errors import PermissionDenied
from moviestream.api.role import UserRole
from moviestream.api.security import get_current_user, hash_password, verify_password
from moviestream.api.schemas import (
    FavouriteRequest,
    MessageResponse,
    MovieResponse,
    PasswordChangeRequest,
    ProfileUpdateRequest,
    UserResponse,
)


# Every route acts on the calling user, resolved from the request's bearer token
router = APIRouter(prefix="/users/me", tags=["users"])


@router.get("", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    """Returns the profile of the logged in user."""
    return UserResponse.model_validate(current_user)


@router.put("", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Updates fullName, email and/or image of the logged in user. Fields that are
    not part of the payload stay unchanged.

    **Parameters**:\n
    `payload` (ProfileUpdateRequest): The new profile values.\n

    **Returns**:\n
    `UserResponse`(response_model): The updated profile.
    """
    if payload.email and payload.email != current_user.email:
        email_taken = db.query(User).filter(User.email == payload.email).first()
        if email_taken:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists.")
        current_user.email = payload.email

    if payload.full_name is not None:
        current_user.full_name = payload.full_name
    if payload.image is not None:
        current_user.image = payload.image

    db.commit()
    db.refresh(current_user)
    return UserResponse.model_validate(current_user)


@router.delete("", response_model=MessageResponse)
def delete_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Deletes the account of the logged in user. Reviews written by the user are
    kept with their name and image snapshot. Admin accounts can't delete
    themselves.
    """
    if current_user.role == UserRole.ADMIN:
        raise PermissionDenied("Can't delete admin user")

    db.delete(current_user)
    db.commit()
    return MessageResponse(message="User deleted successfully")


@router.put("/password", response_model=MessageResponse)
def change_password(
    payload: PasswordChangeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Replaces the password of the logged in user after checking the old one."""
    if not verify_password(payload.old_password, current_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid old password")

    current_user.hashed_password = hash_password(payload.new_password)
    db.commit()
    return MessageResponse(message="Password changed!")


@router.get("/favourites", response_model=List[MovieResponse])
def get_liked_movies(current_user: User = Depends(get_current_user)):
    """Returns all movies the logged in user liked."""
    return [MovieResponse.model_validate(movie) for movie in current_user.liked_movies]


@router.post("/favourites", response_model=List[MovieResponse], status_code=status.HTTP_201_CREATED)
def add_liked_movie(
    payload: FavouriteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Adds a movie to the favourites of the logged in user.

    **Parameters**:\n
    `payload` (FavouriteRequest): `movieId` of the movie to like.\n

    **Returns**:\n
    List of all liked movies.
    """
    movie = get_movie_by_id(db, payload.movie_id)

    if any(liked.id == movie.id for liked in current_user.liked_movies):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Movie already liked")

    current_user.liked_movies.append(movie)
    db.commit()
    return [MovieResponse.model_validate(liked) for liked in current_user.liked_movies]


@router.delete("/favourites", response_model=MessageResponse)
def delete_liked_movies(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Removes all movies from the favourites of the logged in user."""
    current_user.liked_movies.clear()
    db.commit()
    return MessageResponse(message="Your favourite movies deleted successfully")
