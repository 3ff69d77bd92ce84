"""
Paginated list payload shared by public and admin listings.
"""
from typing import Generic, List, Optional, TypeVar
from pydantic import BaseModel, Field, ConfigDict

T = TypeVar("T")

class PaginationMeta(BaseModel):
    current_page: int
    per_page: int
    total: int
    last_page: int
    # "from" is a keyword; serialized under its public name
    from_: Optional[int] = Field(None, serialization_alias="from")
    to: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)

class PaginationLinks(BaseModel):
    first: Optional[str] = None
    last: Optional[str] = None
    prev: Optional[str] = None
    next: Optional[str] = None

class PaginatedResponse(BaseModel, Generic[T]):
    data: List[T]
    meta: PaginationMeta
    links: PaginationLinks
