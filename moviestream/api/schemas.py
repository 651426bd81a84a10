from datetime import datetime
from typing import Optional, List

from pydantic import (
    AliasChoices,
    AliasGenerator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
)
from pydantic.alias_generators import to_camel

from moviestream.api.role import UserRole


#___________________________________________________________________________________________________
# General schemas
#___________________________________________________________________________________________________

class CamelRequest(BaseModel):
    """Request body sent in camelCase by the client, field names stay snake_case in python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CamelResponse(BaseModel):
    """Response built from ORM objects and serialized with camelCase keys."""
    model_config = ConfigDict(
        from_attributes=True,
        alias_generator=AliasGenerator(serialization_alias=to_camel),
    )


#___________________________________________________________________________________________________
# Request schemas
#___________________________________________________________________________________________________

class UserRoleRequest(BaseModel):
    """Request model for changing a user's role.

    Fields:
    - role: the target role to assign to the user.
    """
    role: UserRole = Field(..., description="Target role to assign (user, admin)")


class ActiveUserRequest(BaseModel):
    """Request model to activate or deactivate a user.

    Fields:
    - is_active: True to activate, False to deactivate.
    """
    is_active: bool = Field(..., description="True to activate the user, False to deactivate")


class UserCreate(CamelRequest):
    """Request model used when creating a new user.

    Fields:
    - email: user's email address
    - password: plain-text password (will be hashed before storage)
    - fullName: display name, copied into the user's reviews
    - image: optional avatar reference
    """
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=6, description="Plain-text password (will be hashed)")
    full_name: str = Field(..., min_length=1, max_length=255, description="Display name")
    image: Optional[str] = Field(None, max_length=500, description="Avatar image reference")


class ProfileUpdateRequest(CamelRequest):
    """Fields of the own profile that can be changed. Missing fields stay untouched."""
    email: Optional[EmailStr] = None
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    image: Optional[str] = Field(None, max_length=500)


class PasswordChangeRequest(CamelRequest):
    old_password: str = Field(..., description="Current password")
    new_password: str = Field(..., min_length=6, description="New plain-text password")


class FavouriteRequest(CamelRequest):
    movie_id: str = Field(..., description="Id of the movie to add to the favourites")


class MovieCreate(CamelRequest):
    """Input schema for creating or importing a movie. Rate and review count are derived."""
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(
        None, validation_alias=AliasChoices("desc", "description"), description="Plot summary"
    )
    title_image: Optional[str] = Field(None, max_length=500)
    image: Optional[str] = Field(None, max_length=500)
    video: Optional[str] = Field(None, max_length=500)
    category: Optional[str] = Field(None, max_length=100)
    language: Optional[str] = Field(None, max_length=100)
    year: Optional[int] = Field(None, ge=1870, le=3000)
    time: Optional[int] = Field(None, gt=0, description="Runtime in minutes")


class ReviewCreate(BaseModel):
    """Input schema for `POST /movies/{movie_id}/reviews`."""
    rating: int = Field(..., ge=1, le=5, description="Rating from 1 (worst) to 5 (best)")
    comment: str = Field(..., min_length=1, max_length=1000, description="Review text")


#___________________________________________________________________________________________________
# Response schemas
#___________________________________________________________________________________________________

class Token(BaseModel):
    """Authentication token response.

    Fields:
    - access_token: the JWT access token
    - token_type: token type (usually "bearer")
    """
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field("bearer", description="Token type (usually 'bearer')")


class MessageResponse(BaseModel):
    message: str


class UserResponse(CamelResponse):
    """User representation returned by profile and admin endpoints.

    Fields:
    - id: numeric user identifier
    - email: user's email address
    - fullName: display name
    - image: avatar reference
    - isActive: whether the account is active
    - role: assigned role for the user
    """
    id: int = Field(..., description="User ID")
    email: EmailStr = Field(..., description="User email address")
    full_name: str = Field(..., description="Display name")
    image: Optional[str] = Field(None, description="Avatar image reference")
    is_active: bool = Field(..., description="Whether the user account is active")
    role: UserRole = Field(..., description="Assigned user role")


class GetAllUsersResponse(BaseModel):
    """Response model returning a list of all users for admin listing endpoints.

    Fields:
    - users: list of `UserResponse` objects
    """
    users: List[UserResponse] = Field(..., description="List of users")


class ReviewResponse(CamelResponse):
    id: int
    user_id: int
    user_name: str
    user_image: Optional[str] = None
    rating: int
    comment: str
    created_at: datetime


class MovieResponse(CamelResponse):
    """A movie with its reviews in submission order."""
    id: str
    name: str
    description: Optional[str] = Field(None, serialization_alias="desc")
    title_image: Optional[str] = None
    image: Optional[str] = None
    video: Optional[str] = None
    category: Optional[str] = None
    language: Optional[str] = None
    year: Optional[int] = None
    time: Optional[int] = None
    rate: float
    number_of_reviews: int
    reviews: List[ReviewResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class MoviesPageResponse(CamelResponse):
    """Output schema for `GET /movies`."""
    movies: List[MovieResponse] = Field(..., description="Movies of the requested page, newest first")
    page: int = Field(..., description="Requested page number")
    pages: int = Field(..., description="Total number of pages")
    total_movies: int = Field(..., description="Total number of matching movies")


class ReviewSubmittedResponse(CamelResponse):
    """Confirmation for a stored review together with the recomputed aggregate."""
    message: str
    movie_id: str
    rate: float
    number_of_reviews: int
