from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from src.dayreport.domain.exceptions import EmptyResultError, FetchError
from src.dayreport.domain.models.task_request import RequestType, TaskRequest
from src.dayreport.domain.validation import validate_api_url

logger = logging.getLogger(__name__)

PageCallback = Callable[[int, int], Awaitable[None]]

# Members checked, in order, when the body is an object rather than a bare array.
_LIST_MEMBERS = ("data", "list")


@dataclass(frozen=True)
class Page:
    records: list[Any]
    has_more: bool


def parse_page(body: Any, page_size: int) -> Page:
    """Pull the records out of one response body and decide whether to keep paging."""
    if isinstance(body, list):
        return Page(records=body, has_more=len(body) == page_size)
    if isinstance(body, dict):
        for member in _LIST_MEMBERS:
            items = body.get(member)
            if isinstance(items, list):
                has_more = len(items) == page_size and body.get("hasMore") is not False
                return Page(records=items, has_more=has_more)
    return Page(records=[body], has_more=False)


class SourceFetcher:
    """Drains a paginated endpoint into one ordered list of records."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        page_size: int = 100,
        pause_every_pages: int = 10,
        pause_seconds: float = 0.1,
    ) -> None:
        self._client = client
        self._page_size = page_size
        self._pause_every_pages = pause_every_pages
        self._pause_seconds = pause_seconds

    @property
    def page_size(self) -> int:
        return self._page_size

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_page(self, request: TaskRequest, page: int) -> Page:
        params = {**request.request_body, "page": page, "pageSize": self._page_size}
        kwargs: dict[str, Any] = {"headers": request.headers}
        if request.request_type is RequestType.GET:
            kwargs["params"] = params
        else:
            kwargs["json"] = params
        try:
            response = await self._client.request(
                request.request_type.value.upper(), request.api_url, **kwargs
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"Request for page {page} failed with status {exc.response.status_code}",
                page,
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"Request for page {page} failed: {exc}", page) from exc
        try:
            body = response.json()
        except ValueError:
            body = response.text
        return parse_page(body, self._page_size)

    async def fetch_all(
        self, request: TaskRequest, on_page: PageCallback | None = None
    ) -> list[Any]:
        """Fetch pages until the source is exhausted.

        A failure on the first page is raised as ``FetchError``; a failure on a
        later page ends pagination and keeps what was already collected.
        ``on_page`` is awaited after every successful page with the page
        number and the running record total.
        """
        validate_api_url(request.api_url)
        records: list[Any] = []
        page = 1
        has_more = True
        while has_more:
            try:
                result = await self.fetch_page(request, page)
            except FetchError as exc:
                if page == 1:
                    raise
                logger.warning(
                    "Stopping pagination after page failure",
                    extra={"page": page, "records": len(records), "error": str(exc)},
                )
                break
            records.extend(result.records)
            has_more = result.has_more
            if on_page is not None:
                await on_page(page, len(records))
            page += 1
            if self._pause_every_pages and page % self._pause_every_pages == 0:
                await asyncio.sleep(self._pause_seconds)

        logger.info(
            "Fetched records",
            extra={"url": request.api_url, "pages": page - 1, "records": len(records)},
        )
        if not records:
            raise EmptyResultError()
        return records
