"""
Pagination metadata for list responses.

List endpoints return the items as the JSON body and describe the page in
response headers, which CORS exposes to the browser.
"""

from fastapi import Response

from services.querying import Page

PAGINATION_HEADERS = ["X-Total-Count", "X-Total-Pages", "X-Current-Page", "X-Per-Page"]


def set_pagination_headers(response: Response, page: Page) -> None:
    response.headers["X-Total-Count"] = str(page.total)
    response.headers["X-Total-Pages"] = str(page.page_count)
    response.headers["X-Current-Page"] = str(page.page)
    response.headers["X-Per-Page"] = str(page.limit)
