import enum
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Boolean, CheckConstraint, Enum, Index
from sqlalchemy.types import DateTime, TypeDecorator

from library_api.core.database import Base


def utcnow():
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    # stored as UTC, read back aware; SQLite keeps no offset of its own
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Genre(str, enum.Enum):
    FICTION = "FICTION"
    NON_FICTION = "NON_FICTION"
    SCIENCE = "SCIENCE"
    HISTORY = "HISTORY"
    BIOGRAPHY = "BIOGRAPHY"
    FANTASY = "FANTASY"


class Book(Base):
    __tablename__ = "books"
    __table_args__ = (
        CheckConstraint("copies >= 0", name="ck_books_copies_non_negative"),
    )
    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False, index=True)
    author = Column(String, nullable=False, index=True)
    genre = Column(Enum(Genre, native_enum=False, length=16), nullable=False,
                   default=Genre.FICTION, index=True)
    isbn = Column(String, unique=True, index=True, nullable=False)
    description = Column(Text, nullable=True)
    copies = Column(Integer, nullable=False)
    available = Column(Boolean, nullable=False, default=True)
    created_at = Column(UTCDateTime(), default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False)


Index('ix_books_title_author', Book.title, Book.author)


class Borrow(Base):
    __tablename__ = "borrows"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_borrows_quantity_positive"),
    )
    id = Column(Integer, primary_key=True, index=True)
    # plain reference, no FK: borrow rows outlive deleted books
    book_id = Column(Integer, index=True, nullable=False)
    quantity = Column(Integer, nullable=False)
    due_date = Column(UTCDateTime(), nullable=False)
    created_at = Column(UTCDateTime(), default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime(), default=utcnow, onupdate=utcnow, nullable=False)
