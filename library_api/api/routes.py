import math
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from library_api.core.config import logger, settings
from library_api.core.database import get_db
from library_api.core.errors import APIError
from library_api.models import models
from library_api.schemas import schemas
from library_api.services import borrowing

router = APIRouter(prefix="/api")

SORTABLE_FIELDS = {
    "title": models.Book.title,
    "author": models.Book.author,
    "genre": models.Book.genre,
    "isbn": models.Book.isbn,
    "copies": models.Book.copies,
    "available": models.Book.available,
    "createdAt": models.Book.created_at,
    "updatedAt": models.Book.updated_at,
}


def get_book_or_404(db: Session, book_id: int, message: str) -> models.Book:
    book = db.query(models.Book).filter(models.Book.id == book_id).first()
    if not book:
        raise APIError(404, message, {"name": "NotFound", "detail": "Book not found"})
    return book


def ensure_isbn_free(db: Session, isbn: str, message: str, book_id: Optional[int] = None):
    query = db.query(models.Book).filter(models.Book.isbn == isbn)
    if book_id is not None:
        query = query.filter(models.Book.id != book_id)
    if query.first():
        raise APIError(400, message, {"name": "DuplicateKey", "detail": "ISBN already exists"})


def positive_int(value: Optional[str], default: int, name: str) -> int:
    if not value:
        return default
    try:
        number = int(value)
    except ValueError:
        number = 0
    if number < 1:
        raise APIError(400, "Error retrieving books details",
                       {"name": "InvalidQuery", "detail": f"{name} must be a positive integer"})
    return number


def commit_or_fail(db: Session, message: str):
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise APIError(400, message, {"name": "IntegrityError", "detail": str(e.orig)})
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"{message}: {e}")
        raise APIError(500, message, {"name": type(e).__name__})


# -----------------------------
# Books
# -----------------------------
@router.post("/books", status_code=201, response_model=schemas.ApiResponse[schemas.BookOut])
def create_book(book_in: schemas.BookCreate, db: Session = Depends(get_db)):
    message = "Failed to create book"
    ensure_isbn_free(db, book_in.isbn, message)
    book = models.Book(**book_in.model_dump())
    db.add(book)
    commit_or_fail(db, message)
    db.refresh(book)
    logger.info(f"Created book id={book.id} title={book.title}")
    return schemas.ApiResponse[schemas.BookOut](
        message="Book created successfully",
        data=schemas.BookOut.model_validate(book),
    )


@router.get("/books", response_model=schemas.PaginatedResponse)
def list_books(filter: Optional[str] = Query(None, description="genre to filter by"),
               sort: str = Query("asc", description="asc, anything else sorts descending"),
               sort_by: str = Query("createdAt", alias="sortBy"),
               limit: Optional[str] = Query(None),
               page: Optional[str] = Query(None),
               db: Session = Depends(get_db)):
    # empty query values mean "not given"
    sort_by = sort_by or "createdAt"
    limit = positive_int(limit, settings.default_page_size, "limit")
    page = positive_int(page, 1, "page")
    column = SORTABLE_FIELDS.get(sort_by)
    if column is None:
        raise APIError(400, "Error retrieving books details",
                       {"name": "InvalidSortField", "detail": f"Cannot sort by '{sort_by}'",
                        "allowed": sorted(SORTABLE_FIELDS)})

    genre = None
    if filter:
        try:
            genre = models.Genre(filter)
        except ValueError:
            raise APIError(400, "Error retrieving books details",
                           {"name": "InvalidGenre", "detail": f"Unknown genre '{filter}'",
                            "allowed": [g.value for g in models.Genre]})

    query = db.query(models.Book)
    if genre:
        query = query.filter(models.Book.genre == genre)
    total_books = query.count()

    order = column.asc() if sort == "asc" else column.desc()
    tiebreak = models.Book.id.asc() if sort == "asc" else models.Book.id.desc()
    books: List[models.Book] = (
        query.order_by(order, tiebreak)
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return schemas.PaginatedResponse(
        message="Books retrieved successfully",
        data=[schemas.BookOut.model_validate(b) for b in books],
        meta=schemas.PageMeta(
            total_pages=math.ceil(total_books / limit),
            total_items=total_books,
            current_page=page,
            total_items_per_page=limit,
        ),
    )


@router.get("/books/{book_id}", response_model=schemas.ApiResponse[schemas.BookOut])
def read_book(book_id: int, db: Session = Depends(get_db)):
    book = get_book_or_404(db, book_id, "Error retrieving book details")
    return schemas.ApiResponse[schemas.BookOut](
        message="Book retrieved successfully",
        data=schemas.BookOut.model_validate(book),
    )


@router.put("/books/{book_id}", response_model=schemas.ApiResponse[schemas.BookOut])
def update_book(book_id: int, book_upd: schemas.BookUpdate, db: Session = Depends(get_db)):
    message = "Failed to update the book details"
    book = get_book_or_404(db, book_id, message)
    ensure_isbn_free(db, book_upd.isbn, message, book_id=book.id)
    for k, v in book_upd.model_dump().items():
        setattr(book, k, v)
    commit_or_fail(db, message)
    db.refresh(book)
    logger.info(f"Updated book id={book.id}")
    return schemas.ApiResponse[schemas.BookOut](
        message="Book updated successfully",
        data=schemas.BookOut.model_validate(book),
    )


@router.delete("/books/{book_id}", response_model=schemas.ApiResponse)
def delete_book(book_id: int, db: Session = Depends(get_db)):
    message = "Failed to delete book details"
    book = get_book_or_404(db, book_id, message)
    db.delete(book)
    commit_or_fail(db, message)
    logger.info(f"Deleted book id={book_id}")
    return schemas.ApiResponse(message="Book deleted successfully", data=None)


# -----------------------------
# Borrow ledger
# -----------------------------
@router.post("/borrow", status_code=201, response_model=schemas.ApiResponse[schemas.BorrowOut])
def borrow_book(borrow_in: schemas.BorrowCreate, db: Session = Depends(get_db)):
    try:
        borrow = borrowing.borrow_book(db, borrow_in)
    except borrowing.BookNotFoundError as e:
        raise APIError(404, "Failed to create borrow request",
                       {"name": "NotFound", "detail": "Book not found", "book": e.book_id})
    except borrowing.InsufficientCopiesError as e:
        logger.warning(f"Rejected borrow of {e.requested} copies of book {e.book_id}, "
                       f"{e.available} available")
        raise APIError(400, str(e), {"name": "InsufficientCopies",
                                     "requested": e.requested, "available": e.available})
    except SQLAlchemyError as e:
        raise APIError(400, "Failed to create borrow request", {"name": type(e).__name__})
    return schemas.ApiResponse[schemas.BorrowOut](
        message="Book borrowed successfully",
        data=schemas.BorrowOut.model_validate(borrow),
    )


@router.get("/borrow", response_model=schemas.ApiResponse[List[schemas.BorrowSummary]])
def borrow_summary(db: Session = Depends(get_db)):
    try:
        summary = borrowing.borrow_summary(db)
    except SQLAlchemyError as e:
        raise APIError(400, "Error retrieving borrow details", {"name": type(e).__name__})
    return schemas.ApiResponse[List[schemas.BorrowSummary]](
        message="Borrowed books summary retrieved successfully",
        data=summary,
    )
