"""
News sources registry loader.

Parses configs/news_sources.yml into immutable NewsSource objects with
structlog-backed validation and caching.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from app.config import settings
from app.core.logging import get_logger

logger = get_logger()


@dataclass(frozen=True)
class NewsSource:
    """Single RSS/Atom feed definition. Identity is the display name."""

    name: str
    key: str = field(compare=False)
    url: str = field(compare=False)
    category: str = field(compare=False)
    icon: Optional[str] = field(default=None, compare=False)


def load_news_sources_config(path: Optional[Path] = None) -> Dict[str, object]:
    """
    Load raw YAML config.

    Returns empty dict if file is missing or invalid so the API keeps serving
    (an empty registry flows into the fallback payload).
    """
    cfg_path = Path(path) if path else settings.NEWS_SOURCES_PATH
    try:
        text = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.error("news_sources_config_not_found", path=str(cfg_path))
        return {}
    except OSError as exc:
        logger.error("news_sources_config_read_error", path=str(cfg_path), error=str(exc))
        return {}

    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        logger.error("news_sources_config_parse_error", path=str(cfg_path), error=str(exc))
        return {}

    if not isinstance(data, dict):
        logger.error(
            "news_sources_config_invalid_root",
            path=str(cfg_path),
            root_type=type(data).__name__,
        )
        return {}

    return data


def _optional_str(value: object) -> Optional[str]:
    if isinstance(value, str):
        value = value.strip()
        if value:
            return value
    return None


def _validate_source(raw: Dict[str, object]) -> Optional[NewsSource]:
    """Validate raw dict and convert to NewsSource, logging issues."""
    required_keys = ("name", "url", "category")
    missing = [k for k in required_keys if not _optional_str(raw.get(k))]
    if missing:
        logger.warning(
            "news_source_invalid_missing_fields",
            missing=missing,
            raw=raw,
        )
        return None

    url = str(raw["url"]).strip()
    if not url.startswith(("http://", "https://")):
        logger.warning("news_source_invalid_url", url=url, raw=raw)
        return None

    icon = _optional_str(raw.get("icon"))
    if icon is not None and not icon.startswith(("http://", "https://")):
        logger.warning("news_source_invalid_icon", icon=icon, source=raw.get("name"))
        icon = None

    name = str(raw["name"]).strip()
    return NewsSource(
        key=_optional_str(raw.get("key")) or name.lower().replace(" ", "_"),
        name=name,
        url=url,
        category=str(raw["category"]).strip(),
        icon=icon,
    )


@lru_cache(maxsize=8)
def _load_sources_from_path(path_str: str) -> tuple[NewsSource, ...]:
    cfg_path = Path(path_str)
    cfg = load_news_sources_config(cfg_path)
    raw_sources = cfg.get("sources", [])

    if not isinstance(raw_sources, list):
        logger.error(
            "news_sources_invalid_sources_type",
            actual_type=type(raw_sources).__name__,
            path=str(cfg_path),
        )
        return ()

    result: List[NewsSource] = []
    seen_names: set[str] = set()
    for idx, raw in enumerate(raw_sources):
        if not isinstance(raw, dict):
            logger.warning(
                "news_source_invalid_entry_type",
                index=idx,
                value_type=type(raw).__name__,
            )
            continue
        parsed = _validate_source(raw)
        if parsed is None:
            continue
        if parsed.name in seen_names:
            logger.warning("news_source_duplicate_name", source=parsed.name, index=idx)
            continue
        seen_names.add(parsed.name)
        result.append(parsed)

    logger.info(
        "news_sources_loaded",
        path=str(cfg_path),
        total=len(result),
    )
    return tuple(result)


def get_all_news_sources(path: Optional[Path] = None) -> List[NewsSource]:
    """
    Public accessor for all valid news sources.

    Accepts optional path (useful for tests). Results are cached per-path.
    """
    cfg_path = Path(path) if path else settings.NEWS_SOURCES_PATH
    return list(_load_sources_from_path(str(cfg_path.resolve())))


def list_sources(category: Optional[str] = None, *, path: Optional[Path] = None) -> List[NewsSource]:
    """
    Sources whose category matches exactly (case-sensitive), or all sources
    when no category is given. An unknown category yields an empty list.
    """
    sources = get_all_news_sources(path=path)
    if category is None:
        return sources
    return [source for source in sources if source.category == category]


def clear_news_sources_cache() -> None:
    """Reset LRU cache (useful for tests)."""
    _load_sources_from_path.cache_clear()
