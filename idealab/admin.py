# Admin module for managing the resources CMS
# Protected routes for administrators only

import logging
from typing import Dict, Type

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from idealab.auth import require_admin, UserInfo
from idealab import database as db
from idealab.models import Guide, SuccessCase, Webinar

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/api", tags=["admin"])

# URL segment -> (Firestore collection, model)
RESOURCE_TYPES: Dict[str, tuple] = {
    "guides": ("guides", Guide),
    "success-cases": ("success_cases", SuccessCase),
    "webinars": ("webinars", Webinar),
}


def _resource_type(resource: str) -> tuple:
    if resource not in RESOURCE_TYPES:
        raise HTTPException(status_code=404, detail=f"Unknown resource type: {resource}")
    return RESOURCE_TYPES[resource]


def _validate(model: Type[BaseModel], data: dict, partial: bool = False) -> dict:
    """Validated fields; with `partial` only the fields the caller sent."""
    try:
        return model(**data).dict(exclude_unset=partial)
    except Exception as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/stats")
async def get_stats(user: UserInfo = Depends(require_admin)):
    """Get overall platform statistics."""
    try:
        stats = await db.get_platform_stats()
        return JSONResponse({
            "status": "success",
            "stats": stats
        })
    except Exception as e:
        return JSONResponse({
            "status": "error",
            "message": str(e)
        }, status_code=500)


@router.get("/{resource}")
async def list_resources(resource: str, user: UserInfo = Depends(require_admin)):
    """Every row of a CMS collection, drafts included."""
    collection, _ = _resource_type(resource)
    try:
        items = await db.list_resources(collection)
        return JSONResponse({
            "status": "success",
            "items": items,
            "total": len(items)
        })
    except Exception as e:
        return JSONResponse({
            "status": "error",
            "message": str(e)
        }, status_code=500)


@router.post("/{resource}")
async def create_resource(resource: str, data: dict, user: UserInfo = Depends(require_admin)):
    collection, model = _resource_type(resource)
    try:
        payload = _validate(model, data)
        existing = await db.get_resource_by_slug(collection, payload["slug"])
        if existing:
            return JSONResponse({
                "status": "error",
                "message": f"Slug '{payload['slug']}' is already in use"
            }, status_code=400)

        resource_id = await db.save_resource(collection, payload)
        logger.info(f"{user.email} created {collection}/{resource_id}")
        return JSONResponse({
            "status": "success",
            "id": resource_id
        })
    except HTTPException:
        raise
    except Exception as e:
        return JSONResponse({
            "status": "error",
            "message": str(e)
        }, status_code=500)


@router.put("/{resource}/{resource_id}")
async def update_resource(resource: str, resource_id: str, data: dict,
                          user: UserInfo = Depends(require_admin)):
    collection, model = _resource_type(resource)
    try:
        payload = _validate(model, data, partial=True)
        existing = await db.get_resource_by_slug(collection, payload["slug"])
        if existing and existing.get("id") != resource_id:
            return JSONResponse({
                "status": "error",
                "message": f"Slug '{payload['slug']}' is already in use"
            }, status_code=400)

        await db.save_resource(collection, payload, resource_id=resource_id)
        logger.info(f"{user.email} updated {collection}/{resource_id}")
        return JSONResponse({
            "status": "success",
            "id": resource_id
        })
    except HTTPException:
        raise
    except Exception as e:
        return JSONResponse({
            "status": "error",
            "message": str(e)
        }, status_code=500)


@router.delete("/{resource}/{resource_id}")
async def delete_resource(resource: str, resource_id: str, user: UserInfo = Depends(require_admin)):
    collection, _ = _resource_type(resource)
    try:
        deleted = await db.delete_resource(collection, resource_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Resource not found")

        logger.info(f"{user.email} deleted {collection}/{resource_id}")
        return JSONResponse({
            "status": "success",
            "message": f"Deleted {resource_id}"
        })
    except HTTPException:
        raise
    except Exception as e:
        return JSONResponse({
            "status": "error",
            "message": str(e)
        }, status_code=500)
