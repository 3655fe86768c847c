# dashboard.py
from fastapi import FastAPI, Request, HTTPException, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from typing import Optional

from idealab import database as db
from idealab.admin import router as admin_router
from idealab.auth import require_auth, UserInfo
from idealab.config import CORS_ORIGINS, FEATURE_COSTS, PLAN_CREDITS, PLANS, SUPPORTED_LANGUAGES, TOOL_CATEGORIES
from idealab.exports import EXPORT_FORMATS, clipboard_text, content_disposition, export_filename, render_export
from idealab.functions import FunctionsClient
from idealab.generation import ToolRunner
from idealab.i18n import load_catalog, normalize_language, supported_language_ids, translate
from idealab.models import ExportRequest, Profile, ToolRequest
from idealab.plans import get_feature_cost, get_plan_credits, has_credits, has_feature_access
from idealab.resources import router as resources_router
from idealab.tools.loader import get_tool, list_tools

# --- Initialize and configure FastAPI ---
app = FastAPI(title="idealab")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(resources_router)
app.include_router(admin_router)

# ToolResult.status -> HTTP status
GENERATION_STATUS_CODES = {
    "generated": 200,
    "mock": 200,
    "rejected": 400,
    "failed": 502,
}

# Rejections and failures about credits are reported as 402
CREDIT_REASONS = {"tools.notEnoughCredits", "tools.creditsError"}


class LanguageRequest(BaseModel):
    language: str


def get_functions_client(user: UserInfo = Depends(require_auth)) -> FunctionsClient:
    """Functions service client acting as the signed-in user."""
    return FunctionsClient(access_token=user.access_token)


def request_language(request: Request, profile: Optional[Profile] = None) -> str:
    """?lang= first, then the saved preference, then Accept-Language."""
    language = request.query_params.get("lang")
    if not language and profile is not None:
        language = profile.language
    if not language:
        language = request.headers.get("accept-language")
    return normalize_language(language)


async def load_profile(user: UserInfo) -> Optional[Profile]:
    data = await db.get_profile(user.uid)
    if data is None:
        return None
    data["uid"] = user.uid
    return Profile(**data)


def _tool_or_404(tool_id: str, language: str):
    try:
        return get_tool(tool_id)
    except ValueError:
        raise HTTPException(status_code=404, detail=translate("tools.unknownTool", language, tool=tool_id))


def _tool_summary(tool, profile: Optional[Profile], language: str) -> dict:
    return {
        "id": tool.id,
        "name": translate(f"toolNames.{tool.id}", language, default=tool.name),
        "description": tool.description,
        "category": tool.category,
        "cost": get_feature_cost(profile, tool.feature),
        "affordable": has_credits(profile, tool.feature),
        "available": has_feature_access(profile, tool.feature),
    }


def _attachment(body: str, filename: str, fmt: str) -> Response:
    return Response(
        content=body.encode("utf-8"),
        media_type=f"{EXPORT_FORMATS[fmt]}; charset=utf-8",
        headers={"Content-Disposition": content_disposition(filename)},
    )


# --------------------------------------------------
# Routes
# --------------------------------------------------

@app.get("/")
def service_info():
    """Basic service information, also used as a health check"""
    return {"status": "success", "service": "idealab", "languages": supported_language_ids()}


@app.get("/api/user/status")
async def get_user_status(user: UserInfo = Depends(require_auth)):
    """Plan, credits and language of the current user"""
    try:
        profile = await load_profile(user)
        plan = profile.plan if profile else "free"
        return JSONResponse({
            "status": "success",
            "user": user.to_dict(),
            "plan": plan,
            "credits": profile.credits if profile else 0,
            "first_analysis_done": profile.first_analysis_done if profile else False,
            "language": normalize_language(profile.language if profile else None),
            "plan_credits": get_plan_credits(plan),
        })
    except Exception as e:
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)


@app.get("/api/plans")
def get_plans():
    """Plans, the credits they grant and the cost of every feature"""
    return JSONResponse({
        "status": "success",
        "plans": [{"id": plan, "credits": PLAN_CREDITS[plan]} for plan in PLANS],
        "feature_costs": FEATURE_COSTS,
    })


@app.get("/api/tools")
async def get_tools(request: Request, category: Optional[str] = None,
                    user: UserInfo = Depends(require_auth)):
    """Tool catalog with the caller's effective cost for each tool"""
    try:
        if category and category not in TOOL_CATEGORIES:
            return JSONResponse({
                "status": "error",
                "message": f"Unknown category: {category}"
            }, status_code=400)

        profile = await load_profile(user)
        language = request_language(request, profile)
        tools = [_tool_summary(tool, profile, language) for tool in list_tools(category)]
        return JSONResponse({
            "status": "success",
            "tools": tools,
            "categories": TOOL_CATEGORIES,
            "credits": profile.credits if profile else 0,
        })
    except Exception as e:
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)


@app.get("/api/tools/{tool_id}")
async def get_tool_detail(tool_id: str, request: Request, user: UserInfo = Depends(require_auth)):
    """Form definition for one tool"""
    try:
        profile = await load_profile(user)
        language = request_language(request, profile)
        tool = _tool_or_404(tool_id, language)
        cost = get_feature_cost(profile, tool.feature)
        summary = _tool_summary(tool, profile, language)
        summary.update({
            "idea_input": tool.idea_input,
            "options": [option.dict() for option in tool.options],
            "cost_description": translate("tools.toolCostDescription", language, cost=cost,
                                          available=profile.credits if profile else 0),
        })
        return JSONResponse({"status": "success", "tool": summary})
    except HTTPException:
        raise
    except Exception as e:
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)


@app.post("/api/tools/{tool_id}/generate")
async def generate_with_tool(tool_id: str,
                             tool_request: ToolRequest,
                             request: Request,
                             user: UserInfo = Depends(require_auth),
                             client: FunctionsClient = Depends(get_functions_client)):
    """Run a tool: validate, deduct credits, generate, persist"""
    try:
        profile = await load_profile(user)
        if not tool_request.language:
            tool_request.language = request_language(request, profile)
        tool = _tool_or_404(tool_id, tool_request.language)

        outcome = await ToolRunner(tool, client).run(user.uid, profile, tool_request)

        status_code = GENERATION_STATUS_CODES.get(outcome.status, 200)
        if outcome.reason in CREDIT_REASONS:
            status_code = 402
        return JSONResponse({
            "status": "success" if status_code == 200 else "error",
            "result": outcome.dict(),
        }, status_code=status_code)
    except HTTPException:
        raise
    except Exception as e:
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)


@app.post("/api/tools/{tool_id}/export")
async def export_tool_result(tool_id: str, export_request: ExportRequest, request: Request,
                             user: UserInfo = Depends(require_auth)):
    """Download an in-memory result as a JSON or text file"""
    language = request_language(request)
    tool = _tool_or_404(tool_id, language)
    fmt = export_request.format
    if fmt not in EXPORT_FORMATS:
        return JSONResponse({
            "status": "error",
            "message": translate("content.unsupportedFormat", language, format=fmt)
        }, status_code=400)

    try:
        body = render_export(export_request.result, fmt, title=export_request.title,
                             template=tool.export_template)
        return _attachment(body, export_filename(tool.export_prefix, export_request.title, fmt), fmt)
    except Exception as e:
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)


@app.post("/api/tools/{tool_id}/clipboard")
async def clipboard_tool_result(tool_id: str, export_request: ExportRequest, request: Request,
                                user: UserInfo = Depends(require_auth)):
    """Text the dashboard copies to the clipboard"""
    language = request_language(request)
    _tool_or_404(tool_id, language)
    return JSONResponse({
        "status": "success",
        "text": clipboard_text(export_request.result),
        "message": translate("tools.copied", language),
    })


@app.get("/api/ideas")
async def get_ideas(user: UserInfo = Depends(require_auth)):
    """The caller's most recent ideas, for the idea selector"""
    try:
        ideas = await db.list_ideas(user.uid)
        return JSONResponse({"status": "success", "ideas": ideas})
    except Exception as e:
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)


@app.get("/api/content")
async def list_content(request: Request,
                       content_type: Optional[str] = None,
                       search: Optional[str] = None,
                       user: UserInfo = Depends(require_auth)):
    """Saved generation results, optionally filtered by type and title"""
    try:
        items = await db.list_generated_content(user.uid, content_type=content_type)
        if search and search.strip():
            needle = search.strip().lower()
            items = [item for item in items if needle in (item.get("title") or "").lower()]
        return JSONResponse({"status": "success", "items": items, "total": len(items)})
    except Exception as e:
        return JSONResponse({
            "status": "error",
            "message": translate("content.loadError", request_language(request)),
            "detail": str(e)
        }, status_code=500)


@app.get("/api/content/{content_id}")
async def get_content(content_id: str, request: Request, user: UserInfo = Depends(require_auth)):
    try:
        item = await db.get_generated_content(user.uid, content_id)
        if item is None:
            raise HTTPException(status_code=404, detail=translate("content.notFound", request_language(request)))
        return JSONResponse({"status": "success", "item": item})
    except HTTPException:
        raise
    except Exception as e:
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)


@app.delete("/api/content/{content_id}")
async def delete_content(content_id: str, request: Request, user: UserInfo = Depends(require_auth)):
    language = request_language(request)
    try:
        deleted = await db.delete_generated_content(user.uid, content_id)
        if not deleted:
            raise HTTPException(status_code=404, detail=translate("content.notFound", language))
        return JSONResponse({"status": "success", "message": translate("content.deleted", language)})
    except HTTPException:
        raise
    except Exception as e:
        return JSONResponse({
            "status": "error",
            "message": translate("content.deleteError", language),
            "detail": str(e)
        }, status_code=500)


def _tool_for_content_type(content_type: Optional[str]):
    for tool in list_tools():
        if tool.content_type and tool.content_type == content_type:
            return tool
    return None


@app.get("/api/content/{content_id}/export")
async def export_content(content_id: str, request: Request, format: str = "json",
                         user: UserInfo = Depends(require_auth)):
    """Download a saved result as a JSON or text file"""
    language = request_language(request)
    if format not in EXPORT_FORMATS:
        return JSONResponse({
            "status": "error",
            "message": translate("content.unsupportedFormat", language, format=format)
        }, status_code=400)

    try:
        item = await db.get_generated_content(user.uid, content_id)
        if item is None:
            raise HTTPException(status_code=404, detail=translate("content.notFound", language))

        content_type = item.get("content_type")
        tool = _tool_for_content_type(content_type)
        prefix = tool.export_prefix if tool else (content_type or "content").replace("-", "_")
        title = item.get("title")
        body = render_export(item.get("content_data"), format, title=title,
                             template=tool.export_template if tool else None)
        return _attachment(body, export_filename(prefix, title, format), format)
    except HTTPException:
        raise
    except Exception as e:
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)


@app.get("/api/languages")
def get_languages():
    return JSONResponse({"status": "success", "languages": SUPPORTED_LANGUAGES})


@app.get("/api/i18n/{language}")
def get_translations(language: str):
    """Full string catalog so the client can re-render in place"""
    lang = normalize_language(language)
    return JSONResponse({"status": "success", "language": lang, "strings": load_catalog(lang)})


@app.post("/api/settings/language")
async def set_language(language_request: LanguageRequest, user: UserInfo = Depends(require_auth)):
    """Save the interface language"""
    requested = (language_request.language or "").strip()
    base = requested.lower().replace("_", "-").split("-")[0]
    if base not in supported_language_ids():
        return JSONResponse({
            "status": "error",
            "message": translate("settings.unsupportedLanguage", None, language=requested)
        }, status_code=400)

    try:
        await db.save_language_preference(user.uid, base)
        return JSONResponse({
            "status": "success",
            "language": base,
            "message": translate("settings.languageSaved", base),
            "strings": load_catalog(base)
        })
    except Exception as e:
        return JSONResponse({"status": "error", "message": str(e)}, status_code=500)
