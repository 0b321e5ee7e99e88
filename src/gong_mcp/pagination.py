"""Cursor-driven pagination across heterogeneous response shapes.

The engine issues one request per page and merges pages with an ordered list
of ``(predicate, strategy)`` pairs, evaluated top to bottom on every page:

1. ``records`` is an array
2. ``calls``, ``users``, ``results`` is an array (in that order)
3. the page itself is an array
4. anything else is kept in ``additionalPages``

The field chosen from the first page is fixed for the whole call. A later
page that matches a different field is treated as malformed and goes to
``additionalPages`` instead of being dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import httpx

from .executors import RequestBuilder, RestExecutor
from .models import (
    BODY_PARAM,
    CURSOR_PARAM,
    AuthMaterial,
    OperationDescriptor,
    PageAccumulator,
)


logger = logging.getLogger(__name__)

NAMED_ARRAY_FIELDS = ("records", "calls", "users", "results")
TOP_LEVEL_ARRAY = "[]"
ADDITIONAL_PAGES = "additionalPages"
MERGED_ADDITIONAL_PAGES = "_additionalPages"
PAGINATION_INFO = "_paginationInfo"


def extract_next_cursor(page: Any) -> Optional[str]:
    """Probe ``records.nextPageCursor``, ``nextPageCursor``, then ``cursor``."""
    if not isinstance(page, dict):
        return None
    records = page.get("records")
    if isinstance(records, dict) and records.get("nextPageCursor"):
        return records["nextPageCursor"]
    if page.get("nextPageCursor"):
        return page["nextPageCursor"]
    if page.get("cursor"):
        return page["cursor"]
    return None


def initial_cursor(descriptor: OperationDescriptor, args: Dict[str, Any]) -> Optional[str]:
    if descriptor.body_content_type and isinstance(args.get(BODY_PARAM), dict):
        return args[BODY_PARAM].get(CURSOR_PARAM) or None
    return args.get(CURSOR_PARAM) or None


@dataclass(frozen=True)
class MergeRule:
    field: str
    matches: Callable[[Any], bool]
    merge: Callable[[PageAccumulator, Any, Optional[str]], None]


def _has_array(field: str) -> Callable[[Any], bool]:
    return lambda page: isinstance(page, dict) and isinstance(page.get(field), list)


def _append_field(field: str) -> Callable[[PageAccumulator, Any, Optional[str]], None]:
    def merge(acc: PageAccumulator, page: Any, next_cursor: Optional[str]) -> None:
        acc.merged[field] = [*acc.merged[field], *page[field]]
        acc.merged["nextPageCursor"] = next_cursor

    return merge


def _concatenate(acc: PageAccumulator, page: Any, next_cursor: Optional[str]) -> None:
    acc.merged = [*acc.merged, *page]


MERGE_RULES: List[MergeRule] = [
    *(MergeRule(field, _has_array(field), _append_field(field)) for field in NAMED_ARRAY_FIELDS),
    MergeRule(TOP_LEVEL_ARRAY, lambda page: isinstance(page, list), _concatenate),
]


def match_rule(page: Any) -> Optional[MergeRule]:
    for rule in MERGE_RULES:
        if rule.matches(page):
            return rule
    return None


def merge_page(acc: PageAccumulator, page: Any, next_cursor: Optional[str]) -> None:
    if acc.page_count == 0:
        acc.merged = page
        rule = match_rule(page)
        acc.merge_field = rule.field if rule else None
        return

    rule = match_rule(page)
    if rule is not None and rule.field == acc.merge_field:
        rule.merge(acc, page, next_cursor)
        return

    if rule is not None and acc.merge_field is not None:
        logger.warning(
            "Page %s changed shape (%s -> %s); keeping it under %s",
            acc.page_count + 1,
            acc.merge_field,
            rule.field,
            ADDITIONAL_PAGES,
        )
    acc.additional_pages.append(page)


def finalize(acc: PageAccumulator, paginate: bool) -> Any:
    result = acc.merged
    if not isinstance(result, dict):
        result = {"data": result}
    if acc.additional_pages:
        existing = result.get(ADDITIONAL_PAGES)
        if existing is None:
            result[ADDITIONAL_PAGES] = list(acc.additional_pages)
        elif isinstance(existing, list):
            result[ADDITIONAL_PAGES] = [*existing, *acc.additional_pages]
        else:
            # page 1 owns a non-list value under that key
            result[MERGED_ADDITIONAL_PAGES] = list(acc.additional_pages)
    result[PAGINATION_INFO] = {
        "hasMorePages": bool(paginate and acc.cursor),
        "totalPages": acc.page_count,
        "currentPage": acc.page_count,
    }
    return result


class PaginationEngine:
    def __init__(
        self,
        builder: RequestBuilder,
        executor: Optional[RestExecutor] = None,
        max_pages: int = 0,
    ) -> None:
        self.builder = builder
        self.executor = executor or RestExecutor()
        self.max_pages = max_pages

    async def run(
        self,
        client: httpx.AsyncClient,
        descriptor: OperationDescriptor,
        args: Dict[str, Any],
        auth: Optional[AuthMaterial],
        paginate: bool = False,
    ) -> Any:
        acc = PageAccumulator(cursor=initial_cursor(descriptor, args))

        while True:
            request = self.builder.build(descriptor, args, auth, cursor=acc.cursor)
            page = await self.executor.execute(client, request)
            next_cursor = extract_next_cursor(page)

            merge_page(acc, page, next_cursor)
            acc.page_count += 1
            acc.cursor = next_cursor

            if not (paginate and next_cursor):
                break
            if self.max_pages and acc.page_count >= self.max_pages:
                logger.info(
                    "Stopping %s after %s pages (page cap reached)", descriptor.name, acc.page_count
                )
                break
            logger.debug(
                "Retrieved page %s of %s; next cursor %s...",
                acc.page_count,
                descriptor.name,
                str(next_cursor)[:20],
            )

        return finalize(acc, paginate)
