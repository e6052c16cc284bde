"""Link header driven pagination over GitHub REST list endpoints."""

import re
from typing import Any, Awaitable, Callable, Protocol
from urllib.parse import parse_qs, urlsplit

import structlog

logger = structlog.get_logger(__name__)

LINK_RELATION_PATTERN = re.compile(r'<(?P<url>[^>]*)>\s*;\s*rel="(?P<rel>[^"]+)"')
"""Pattern matching one `<url>; rel="name"` entry of a Link header."""


class PageResponse(Protocol):
    """The parts of an HTTP response that pagination relies on."""

    @property
    def headers(self) -> Any: ...

    def json(self) -> Any: ...


def parse_link_header(link_header: str | None) -> dict[str, str]:
    """Parse a Link header into a mapping of relation name to URL.

    A relation attribute holding several space separated names (e.g.
    `rel="next last"`) maps each name to the same URL.
    """
    relations: dict[str, str] = {}
    if not link_header:
        return relations
    for match in LINK_RELATION_PATTERN.finditer(link_header):
        for rel in match.group("rel").split():
            relations[rel] = match.group("url")
    return relations


def page_number_from_url(url: str) -> int | None:
    """Read the `page` query parameter of a pagination URL."""
    values = parse_qs(urlsplit(url).query).get("page")
    if not values:
        return None
    try:
        return int(values[0])
    except ValueError:
        return None


async def paginate(
    fetch_page: Callable[[int], Awaitable[PageResponse]],
    bound_by_last_page: bool = False,
    description: str = "items",
) -> list[Any]:
    """Fetch every page of a list endpoint and concatenate the items in page order.

    Pages are requested one after another starting at page 1. By default the
    loop follows the `next` relation of the Link header. With
    `bound_by_last_page`, the page number of the `last` relation bounds the
    loop instead, falling back to the `next` relation when the server did not
    send a `last` one.

    Any exception raised by `fetch_page` propagates to the caller.
    """
    items: list[Any] = []
    page = 1
    last_page: int | None = None
    while True:
        response = await fetch_page(page)
        data = response.json()
        if not data:
            break
        items.extend(data)

        relations = parse_link_header(response.headers.get("link"))
        if bound_by_last_page:
            if "last" in relations:
                last_page = page_number_from_url(relations["last"]) or last_page
            if last_page is not None:
                if page >= last_page:
                    break
            elif "next" not in relations:
                break
        elif "next" not in relations:
            break
        page += 1

    logger.debug("Fetched all pages", description=description, pages=page, total=len(items))
    return items
