from datetime import timezone
from typing import List

from sqlalchemy import case, func, update
from sqlalchemy.orm import Session

from library_api.core.config import logger
from library_api.models.models import Book, Borrow
from library_api.schemas import schemas


class BorrowError(ValueError):
    pass


class BookNotFoundError(BorrowError):
    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} not found")
        self.book_id = book_id


class InsufficientCopiesError(BorrowError):
    def __init__(self, book_id: int, requested: int, available: int):
        super().__init__("The requested quantity is bigger than the available copies")
        self.book_id = book_id
        self.requested = requested
        self.available = available


def borrow_book(db: Session, borrow_in: schemas.BorrowCreate) -> Borrow:
    quantity = borrow_in.quantity
    try:
        result = db.execute(
            update(Book)
            .where(Book.id == borrow_in.book, Book.copies >= quantity)
            .values(
                copies=Book.copies - quantity,
                # SET expressions see the pre-update row
                available=case((Book.copies == quantity, False), else_=Book.available),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            book = db.get(Book, borrow_in.book)
            if book is None:
                raise BookNotFoundError(borrow_in.book)
            raise InsufficientCopiesError(book.id, quantity, book.copies)

        borrow = Borrow(book_id=borrow_in.book, quantity=quantity,
                        due_date=borrow_in.due_date.astimezone(timezone.utc))
        db.add(borrow)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(borrow)
    logger.info(f"Borrowed {quantity} copies of book {borrow.book_id} borrow {borrow.id}")
    return borrow


def borrow_summary(db: Session) -> List[schemas.BorrowSummary]:
    # inner join: borrows of deleted books drop out
    total = func.sum(Borrow.quantity).label("total_quantity")
    rows = (
        db.query(Book.title, Book.isbn, total)
        .join(Borrow, Borrow.book_id == Book.id)
        .group_by(Book.id, Book.title, Book.isbn)
        .order_by(Book.id)
        .all()
    )
    return [
        schemas.BorrowSummary(book=schemas.BookSummary(title=title, isbn=isbn),
                              total_quantity=int(qty))
        for title, isbn, qty in rows
    ]
