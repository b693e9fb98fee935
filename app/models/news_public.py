from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire (the front end reads camelCase)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class NewsItem(_CamelModel):
    """Canonical, display-ready news article. Lives for a single request."""

    id: str
    title: str
    link: str
    description: str = ""
    pub_date: str = Field(description="ISO-8601 UTC timestamp, millisecond precision.")
    source: str
    source_icon: Optional[str] = None
    category: str
    author: str = "Unknown"
    image_url: str = ""


class PaginationMeta(_CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_previous_page: bool


class NewsPageResponse(_CamelModel):
    """Paginated response for /api/v1/news."""

    items: List[NewsItem]
    pagination: PaginationMeta


class NewsSourceRecord(_CamelModel):
    key: str
    name: str
    url: str
    icon: Optional[str] = None
    category: str


class NewsSourceListResponse(_CamelModel):
    sources: List[NewsSourceRecord]


class ErrorResponse(BaseModel):
    error: str
