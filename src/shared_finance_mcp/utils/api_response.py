"""
Normalization of list responses.

List endpoints answer either with a bare array or with a paginated
envelope `{"items": [...], "meta": {...}}`. Every caller goes through
`normalize_list_response` so it only ever sees one shape.
"""

import logging
from typing import Any, List, Optional, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class PaginatedMeta(BaseModel):
    """Pagination metadata of an envelope response."""

    model_config = {"populate_by_name": True}

    page: Optional[int] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    total: Optional[int] = None
    total_pages: Optional[int] = Field(default=None, alias="totalPages")


class NormalizedList(BaseModel):
    """A list payload in its one canonical shape."""

    items: List[Any] = []
    meta: Optional[PaginatedMeta] = None


def normalize_list_response(payload: Any) -> NormalizedList:
    """
    Normalize a list endpoint payload.

    - None (or any empty payload) gives an empty list
    - a list is used as the items
    - a mapping contributes its `items` (only if it is a list) and `meta`

    Never raises: unexpected shapes degrade to an empty list and a
    malformed `meta` is dropped.
    """
    if not payload:
        return NormalizedList()

    if isinstance(payload, list):
        return NormalizedList(items=payload)

    if not isinstance(payload, dict):
        logger.debug("Unexpected list payload type %s", type(payload).__name__)
        return NormalizedList()

    raw_items = payload.get("items")
    items = raw_items if isinstance(raw_items, list) else []

    meta = None
    raw_meta = payload.get("meta")
    if isinstance(raw_meta, dict):
        try:
            meta = PaginatedMeta.model_validate(raw_meta)
        except ValidationError as e:
            logger.debug("Dropping malformed pagination meta: %s", e)

    return NormalizedList(items=items, meta=meta)


def parse_list(payload: Any, model: Type[M]) -> List[M]:
    """
    Normalize a list payload and validate each item as `model`.

    Items that fail validation are skipped and logged.
    """
    result: List[M] = []
    for item in normalize_list_response(payload).items:
        try:
            result.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning("Skipping invalid %s: %s", model.__name__, e)
    return result


def parse_one(payload: Any, model: Type[M]) -> M:
    """Validate a single-resource payload as `model`."""
    return model.model_validate(payload)
