import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from moviestream.db.database_session import Base


def new_movie_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Movie(Base):
    """
    ORM model for 'movies' table.

    `rate` and `number_of_reviews` are derived from `reviews` and only written by
    the review service. `version` is the optimistic concurrency counter; every
    UPDATE checks it and bumps it, so a stale write raises StaleDataError.
    """

    __tablename__ = "movies"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_movie_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    title_image: Mapped[Optional[str]] = mapped_column(String(500))
    image: Mapped[Optional[str]] = mapped_column(String(500))
    video: Mapped[Optional[str]] = mapped_column(String(500))
    category: Mapped[Optional[str]] = mapped_column(String(100), index=True)
    language: Mapped[Optional[str]] = mapped_column(String(100))
    year: Mapped[Optional[int]] = mapped_column(Integer)
    time: Mapped[Optional[int]] = mapped_column(Integer)        # runtime in minutes
    rate: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    number_of_reviews: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    # Submission order == insertion order of the child rows
    reviews: Mapped[List["Review"]] = relationship(
        back_populates="movie",
        order_by="Review.id",
        cascade="all, delete-orphan",
    )

    __mapper_args__ = {"version_id_col": version}


class Review(Base):
    """
    ORM model for 'reviews' table. A review belongs to exactly one movie.

    user_id is a back reference only (no foreign key): the review keeps its
    snapshot of user_name / user_image even if the author account is removed.
    """

    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint("movie_id", "user_id", name="uq_reviews_movie_user"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    movie_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("movies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_image: Mapped[Optional[str]] = mapped_column(String(500))
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )

    movie: Mapped[Movie] = relationship(back_populates="reviews")
