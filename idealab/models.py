from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class Idea(BaseModel):
    """
    A user-authored business concept used as context for generation calls.
    """
    id: Optional[str] = None
    title: str = ""
    description: str = ""
    audience: Optional[str] = None
    monetization: Optional[str] = None
    location: Optional[str] = None
    created_at: Optional[str] = None


class Profile(BaseModel):
    """Credit and plan information for the signed-in user."""
    uid: str
    plan: str = "free"
    credits: int = 0
    first_analysis_done: bool = False
    language: Optional[str] = None


class Notice(BaseModel):
    """A message the dashboard shows as a toast."""
    level: str  # success | error | warning | info
    message: str


class ToolRequest(BaseModel):
    """Form state submitted by a tool screen"""
    idea_id: Optional[str] = None
    custom_idea: Optional[str] = None
    use_custom_idea: bool = False
    options: Dict[str, Any] = Field(default_factory=dict)
    language: Optional[str] = None


class ToolResult(BaseModel):
    """Outcome of one tool run"""
    tool: str
    status: str  # generated | mock | rejected | failed
    reason: Optional[str] = None  # translation key of the error notice
    title: Optional[str] = None
    result: Optional[Any] = None
    is_mock: bool = False
    credits_charged: int = 0
    credits_remaining: Optional[int] = None
    content_id: Optional[str] = None
    notices: List[Notice] = Field(default_factory=list)


class ExportRequest(BaseModel):
    """An in-memory result the dashboard wants as a file or clipboard text"""
    title: Optional[str] = None
    result: Any
    format: str = "json"


# --- CMS content managed from the admin screens ---

class Guide(BaseModel):
    title: str
    slug: str
    description: str = ""
    content: str = ""
    category: Optional[str] = None
    level: Optional[str] = None
    status: str = "draft"
    reading_time: Optional[int] = None
    featured: bool = False


class SuccessCase(BaseModel):
    title: str
    slug: str
    company_name: str = ""
    company_logo_url: Optional[str] = None
    founder_name: Optional[str] = None
    founder_photo_url: Optional[str] = None
    industry: Optional[str] = None
    description: str = ""
    challenge: Optional[str] = None
    solution: Optional[str] = None
    results: Optional[str] = None
    metrics: Optional[Dict[str, Any]] = None
    status: str = "draft"
    featured: bool = False


class Webinar(BaseModel):
    title: str
    slug: str
    description: str = ""
    speaker_name: Optional[str] = None
    speaker_bio: Optional[str] = None
    speaker_photo_url: Optional[str] = None
    scheduled_date: Optional[str] = None
    duration_minutes: int = 60
    registration_url: Optional[str] = None
    recording_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    max_attendees: int = 100
    current_attendees: int = 0
    status: str = "scheduled"
    featured: bool = False
