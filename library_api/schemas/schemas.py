from pydantic import AliasChoices, AwareDatetime, BaseModel, ConfigDict, Field, constr
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import Generic, List, Optional, TypeVar

from library_api.models.models import Genre

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              from_attributes=True)


class BookBase(CamelModel):
    title: constr(strip_whitespace=True, min_length=3)
    author: constr(strip_whitespace=True, min_length=3)
    genre: Genre = Genre.FICTION
    isbn: constr(strip_whitespace=True, min_length=10)
    description: constr(strip_whitespace=True, min_length=10)
    copies: int = Field(ge=1)
    available: bool = True


class BookCreate(BookBase):
    pass


class BookUpdate(BookBase):
    pass


class BookOut(CamelModel):
    id: int
    title: str
    author: str
    genre: Genre
    isbn: str
    description: Optional[str] = None
    copies: int
    available: bool
    created_at: datetime
    updated_at: datetime


class BorrowCreate(CamelModel):
    book: int = Field(gt=0)
    quantity: int = Field(ge=1)
    due_date: AwareDatetime


class BorrowOut(CamelModel):
    id: int
    book: int = Field(validation_alias=AliasChoices("book", "book_id"))
    quantity: int
    due_date: datetime
    created_at: datetime
    updated_at: datetime


class BookSummary(CamelModel):
    title: str
    isbn: str


class BorrowSummary(CamelModel):
    book: BookSummary
    total_quantity: int


class PageMeta(CamelModel):
    total_pages: int
    total_items: int
    current_page: int
    total_items_per_page: int


class ApiResponse(CamelModel, Generic[DataT]):
    success: bool = True
    message: str
    data: Optional[DataT] = None


class PaginatedResponse(ApiResponse[List[BookOut]]):
    meta: PageMeta
