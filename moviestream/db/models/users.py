from typing import List, Optional

from sqlalchemy import String, Boolean, Enum, Table, Column, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moviestream.db.database_session import Base
from moviestream.db.models.movies import Movie
from moviestream.api.role import UserRole


# Many-to-many link between users and the movies they liked
liked_movies = Table(
    "liked_movies",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("movie_id", ForeignKey("movies.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """
    Table definition for table called "users".
    """
    # Define table name
    __tablename__ = "users"

    # Define column named id as primary key
    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(
        String(320),        # Max length of a valid email address
        unique=True,        # Emails are unique -> one account per address
        index=True,         # Login looks users up by email
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    # Avatar reference, copied into every review the user writes
    image: Mapped[Optional[str]] = mapped_column(String(500))
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    # Marks if the user has access to the system or not. False -> No Access 
    is_active: Mapped[bool] = mapped_column(
        Boolean, 
        default=True,
        nullable=False
    )
    role: Mapped[UserRole] = mapped_column(
        # Stored by name (USER, ADMIN) in SQL, used as enum in Python
        Enum(UserRole),
        default=UserRole.USER,
        nullable=False,
    )

    liked_movies: Mapped[List[Movie]] = relationship(secondary=liked_movies)
