# Database module for Firestore operations
# Provides user-scoped access to ideas, generated content and profiles, plus the shared CMS collections

import json
import logging
from datetime import datetime
from typing import Optional, Dict, List, Any

from google.cloud import firestore

from idealab.config import IDEAS_LIST_LIMIT

logger = logging.getLogger(__name__)

# Firestore client (lazy initialization)
_db = None


def get_db() -> firestore.Client:
    """Get or create Firestore client."""
    global _db
    if _db is None:
        _db = firestore.Client()
    return _db


def _user_ref(user_id: str):
    return get_db().collection("users").document(user_id)


# --- Profiles ---

async def get_profile(user_id: str) -> Optional[Dict[str, Any]]:
    """Get the profile document (plan, credits, language) for a user."""
    doc = _user_ref(user_id).get()
    if doc.exists:
        data = doc.to_dict()
        data["uid"] = user_id
        return data
    return None


async def save_language_preference(user_id: str, language: str) -> None:
    """Store the user's interface language."""
    _user_ref(user_id).set({
        "language": language,
        "last_activity": datetime.utcnow().isoformat()
    }, merge=True)


# --- Ideas ---

async def list_ideas(user_id: str, limit: int = IDEAS_LIST_LIMIT) -> List[Dict[str, Any]]:
    """List a user's ideas, most recent first."""
    docs = (_user_ref(user_id).collection("ideas")
            .order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
            .stream())

    ideas = []
    for doc in docs:
        data = doc.to_dict()
        data["id"] = doc.id
        ideas.append(data)
    return ideas


async def get_idea(user_id: str, idea_id: str) -> Optional[Dict[str, Any]]:
    """Get a specific idea for a user."""
    doc = _user_ref(user_id).collection("ideas").document(idea_id).get()
    if doc.exists:
        data = doc.to_dict()
        data["id"] = doc.id
        return data
    return None


# --- Generated content ---

# Firestore doesn't support arrays within arrays, so the payload is stored as a JSON string
CONTENT_DATA_FIELD = "content_data"


def _decode_content(doc_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    data["id"] = doc_id
    raw = data.get(CONTENT_DATA_FIELD)
    if isinstance(raw, str):
        try:
            data[CONTENT_DATA_FIELD] = json.loads(raw)
        except json.JSONDecodeError:
            pass  # Keep as string if not valid JSON
    return data


async def save_generated_content(user_id: str,
                                 content_type: str,
                                 title: str,
                                 content_data: Any,
                                 idea_id: Optional[str] = None) -> str:
    """Persist a generation result. Returns the new document id."""
    now = datetime.utcnow().isoformat()
    doc_ref = _user_ref(user_id).collection("generated_content").document()
    doc_ref.set({
        "user_id": user_id,
        "idea_id": idea_id,
        "content_type": content_type,
        "title": title,
        CONTENT_DATA_FIELD: json.dumps(content_data, default=str, ensure_ascii=False),
        "file_url": None,
        "created_at": now,
        "updated_at": now,
    })
    return doc_ref.id


async def list_generated_content(user_id: str, content_type: Optional[str] = None,
                                 limit: int = 200) -> List[Dict[str, Any]]:
    """List a user's generated content, most recent first."""
    query = _user_ref(user_id).collection("generated_content")
    if content_type:
        query = query.where("content_type", "==", content_type)
    docs = (query.order_by("created_at", direction=firestore.Query.DESCENDING)
            .limit(limit)
            .stream())

    return [_decode_content(doc.id, doc.to_dict()) for doc in docs]


async def get_generated_content(user_id: str, content_id: str) -> Optional[Dict[str, Any]]:
    doc = _user_ref(user_id).collection("generated_content").document(content_id).get()
    if doc.exists:
        return _decode_content(doc.id, doc.to_dict())
    return None


async def delete_generated_content(user_id: str, content_id: str) -> bool:
    """Delete a generated content entry owned by the user."""
    doc_ref = _user_ref(user_id).collection("generated_content").document(content_id)
    doc = doc_ref.get()
    if doc.exists:
        doc_ref.delete()
        return True
    return False


# --- CMS collections (guides, success cases, webinars) ---

CMS_COLLECTIONS = ["guides", "success_cases", "webinars"]


async def list_resources(collection: str,
                         status: Optional[str] = None,
                         order_by: str = "created_at",
                         descending: bool = True,
                         limit: int = 100) -> List[Dict[str, Any]]:
    """List rows of a CMS collection, optionally filtered by status."""
    query = get_db().collection(collection)
    if status:
        query = query.where("status", "==", status)
    direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
    docs = query.order_by(order_by, direction=direction).limit(limit).stream()

    rows = []
    for doc in docs:
        data = doc.to_dict()
        data["id"] = doc.id
        rows.append(data)
    return rows


async def get_resource_by_slug(collection: str, slug: str,
                               status: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Get a single CMS row by slug, or None."""
    query = get_db().collection(collection).where("slug", "==", slug)
    if status:
        query = query.where("status", "==", status)
    for doc in query.limit(1).stream():
        data = doc.to_dict()
        data["id"] = doc.id
        return data
    return None


async def save_resource(collection: str, data: Dict[str, Any],
                        resource_id: Optional[str] = None) -> str:
    """Create a CMS row, or update it when `resource_id` is given."""
    now = datetime.utcnow().isoformat()
    save_data = dict(data)
    save_data["updated_at"] = now

    if resource_id:
        doc_ref = get_db().collection(collection).document(resource_id)
        doc_ref.set(save_data, merge=True)
    else:
        save_data.setdefault("created_at", now)
        doc_ref = get_db().collection(collection).document()
        doc_ref.set(save_data)
    return doc_ref.id


async def delete_resource(collection: str, resource_id: str) -> bool:
    doc_ref = get_db().collection(collection).document(resource_id)
    doc = doc_ref.get()
    if doc.exists:
        doc_ref.delete()
        return True
    return False


# --- Admin functions ---

async def get_platform_stats() -> Dict[str, Any]:
    """Counts for the admin dashboard."""
    db = get_db()
    user_count = 0
    content_by_type: Dict[str, int] = {}

    for user_doc in db.collection("users").stream():
        user_count += 1
        contents = db.collection("users").document(user_doc.id).collection("generated_content").limit(500).stream()
        for content in contents:
            content_type = content.to_dict().get("content_type", "unknown")
            content_by_type[content_type] = content_by_type.get(content_type, 0) + 1

    resources = {name: len(list(db.collection(name).limit(500).stream())) for name in CMS_COLLECTIONS}

    return {
        "total_users": user_count,
        "generated_content": content_by_type,
        "total_generated_content": sum(content_by_type.values()),
        "resources": resources,
    }
