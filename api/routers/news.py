from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Query

from app.models.news_public import ErrorResponse, NewsPageResponse, NewsSourceListResponse
from services.news_service import get_news_page, list_news_sources

router = APIRouter(
    prefix="/news",
    tags=["news"],
    responses={500: {"model": ErrorResponse}},
)


@router.get("", response_model=NewsPageResponse)
async def get_news(
    category: Optional[str] = Query(
        default=None,
        description="Exact, case-sensitive source category (general, business, education, lifestyle, sports).",
    ),
    page: int = Query(1, description="1-based page number; values below 1 are treated as 1."),
    items_per_page: Optional[int] = Query(
        default=None,
        alias="itemsPerPage",
        description="Page size; clamped to the configured maximum.",
    ),
    limit: Optional[int] = Query(
        default=None,
        ge=1,
        description="Optional cap on the merged list before pagination.",
    ),
) -> NewsPageResponse:
    return await get_news_page(
        category=category or None,
        page=page,
        items_per_page=items_per_page,
        limit=limit,
    )


@router.get("/sources", response_model=NewsSourceListResponse)
async def get_news_sources(
    category: Optional[str] = Query(default=None),
) -> NewsSourceListResponse:
    return NewsSourceListResponse(sources=list_news_sources(category or None))
