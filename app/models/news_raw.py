from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class RawEntry:
    """
    One feed item as produced by the tolerant parser, before normalization.

    Every field is optional: feeds routinely omit any of them, and a field
    missing from the source document is simply None (or an empty tuple).
    Media fields hold the URL strings found on the corresponding elements.
    """

    title: Optional[str] = None
    link: Optional[str] = None
    guid: Optional[str] = None
    description: Optional[str] = None
    content_snippet: Optional[str] = None
    content_encoded: Optional[str] = None
    content: Optional[str] = None
    creator: Optional[str] = None
    author: Optional[str] = None
    dc_creator: Optional[str] = None
    media_content: Optional[str] = None
    media_thumbnail: Optional[str] = None
    media_group: Tuple[str, ...] = ()
    enclosure_url: Optional[str] = None
    pub_date: Optional[str] = None
    iso_date: Optional[str] = None
    categories: Tuple[str, ...] = ()
