"""Response shapes shared by the staging and quarantine routers."""
from typing import Generic, List, TypeVar

from pydantic import BaseModel

ItemT = TypeVar("ItemT")


class Page(BaseModel, Generic[ItemT]):
    """One page of a repository ``list`` call."""
    items: List[ItemT]
    total: int
    page: int
    limit: int
    pages: int


class DeletedResponse(BaseModel):
    id: int
    files_removed: bool
    message: str
