# Resource feeds for the public resources pages (guides, success cases, webinars)
# Each feed reads one CMS collection and keeps the last result, loading flag and error

import logging
from typing import Any, Callable, Dict, List, Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from idealab import database as db
from idealab.i18n import translate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["resources"])

PUBLISHED = "published"
DRAFT = "draft"


class ContentFeed:
    """
    A read-only view over one CMS collection.

    `items`, `loading` and `error` reflect the last fetch. A failed fetch
    leaves `items` empty and stores the error message instead of raising.
    """

    def __init__(self,
                 collection: str,
                 status: Optional[str] = PUBLISHED,
                 order_by: str = "created_at",
                 descending: bool = True,
                 row_filter: Optional[Callable[[Dict[str, Any]], bool]] = None):
        self.collection = collection
        self.status = status
        self.order_by = order_by
        self.descending = descending
        self.row_filter = row_filter

        self.items: List[Dict[str, Any]] = []
        self.loading = False
        self.error: Optional[str] = None

    async def fetch(self) -> List[Dict[str, Any]]:
        self.loading = True
        self.error = None
        try:
            rows = await db.list_resources(self.collection,
                                           status=self.status,
                                           order_by=self.order_by,
                                           descending=self.descending)
            if self.row_filter:
                rows = [row for row in rows if self.row_filter(row)]
            self.items = rows
        except Exception as e:
            logger.error(f"Error fetching {self.collection}: {e}")
            self.items = []
            self.error = str(e) or "An error occurred"
        finally:
            self.loading = False
        return self.items

    async def refetch(self) -> List[Dict[str, Any]]:
        return await self.fetch()

    async def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        """Single row by slug, or None when missing or on error."""
        try:
            row = await db.get_resource_by_slug(self.collection, slug, status=self.status)
        except Exception as e:
            logger.error(f"Error fetching {self.collection}/{slug}: {e}")
            return None
        if row is not None and self.row_filter and not self.row_filter(row):
            return None
        return row

    def state(self) -> Dict[str, Any]:
        return {"data": self.items, "loading": self.loading, "error": self.error}


def guides_feed() -> ContentFeed:
    return ContentFeed("guides")


def success_cases_feed() -> ContentFeed:
    return ContentFeed("success_cases")


def webinars_feed() -> ContentFeed:
    # Webinars list every non-draft session, soonest first
    return ContentFeed("webinars", status=None, order_by="scheduled_date", descending=False,
                       row_filter=lambda row: row.get("status") != DRAFT)


FEEDS = {
    "guides": guides_feed,
    "success-cases": success_cases_feed,
    "webinars": webinars_feed,
}


def _language(request: Request) -> Optional[str]:
    return request.query_params.get("lang") or request.headers.get("accept-language")


async def _list_feed(resource: str, request: Request):
    feed = FEEDS[resource]()
    items = await feed.fetch()
    if feed.error:
        return JSONResponse({
            "status": "error",
            "message": translate("resources.loadError", _language(request), resource=resource),
            "items": [],
        }, status_code=500)
    return JSONResponse({"status": "success", "items": items, "total": len(items)})


async def _get_by_slug(resource: str, slug: str, request: Request):
    item = await FEEDS[resource]().get_by_slug(slug)
    if item is None:
        return JSONResponse({
            "status": "error",
            "message": translate("resources.notFound", _language(request), resource=resource),
        }, status_code=404)
    return JSONResponse({"status": "success", "item": item})


@router.get("/guides")
async def list_guides(request: Request):
    """Published guides, newest first"""
    return await _list_feed("guides", request)


@router.get("/guides/{slug}")
async def get_guide(slug: str, request: Request):
    return await _get_by_slug("guides", slug, request)


@router.get("/success-cases")
async def list_success_cases(request: Request):
    """Published success cases, newest first"""
    return await _list_feed("success-cases", request)


@router.get("/success-cases/{slug}")
async def get_success_case(slug: str, request: Request):
    return await _get_by_slug("success-cases", slug, request)


@router.get("/webinars")
async def list_webinars(request: Request):
    """Upcoming and recorded webinars, by scheduled date"""
    return await _list_feed("webinars", request)


@router.get("/webinars/{slug}")
async def get_webinar(slug: str, request: Request):
    return await _get_by_slug("webinars", slug, request)
