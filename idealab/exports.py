"""
Downloads and clipboard text for generation results.

JSON exports are the result pretty-printed. Text exports are rendered from
Jinja2 templates in idealab/templates/exports: `generic.txt.j2` lists every
top-level field, tools can name a dedicated template (pitch decks render
slide by slide).
"""

import json
import re
import unicodedata
from pathlib import Path
from typing import Any, List, Optional, Tuple
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

TEMPLATES_DIR = Path(__file__).parent / "templates" / "exports"

EXPORT_FORMATS = {
    "json": "application/json",
    "txt": "text/plain",
}

GENERIC_TEMPLATE = "generic"


def humanize_key(key: str) -> str:
    """'executiveSummary' / 'target_audience' -> 'Executive Summary' / 'Target Audience'"""
    words = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", str(key)).replace("_", " ").replace("-", " ")
    return " ".join(word[:1].upper() + word[1:] for word in words.split())


def render_value(value: Any, indent: int = 0) -> str:
    pad = "  " * indent
    if isinstance(value, dict):
        lines = []
        for key, item in value.items():
            if isinstance(item, (dict, list)):
                lines.append(f"{pad}{humanize_key(key)}:")
                lines.append(render_value(item, indent + 1))
            else:
                lines.append(f"{pad}{humanize_key(key)}: {item}")
        return "\n".join(lines)
    if isinstance(value, list):
        lines = []
        for item in value:
            if isinstance(item, dict):
                # first line of a dict item gets the bullet
                block = render_value(item, indent + 1).lstrip()
                lines.append(f"{pad}- {block}")
            elif isinstance(item, list):
                lines.append(render_value(item, indent + 1))
            else:
                lines.append(f"{pad}- {item}")
        return "\n".join(lines)
    if value is None:
        return f"{pad}-"
    return f"{pad}{value}"


_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=False,
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
)
_env.filters["label"] = humanize_key
_env.filters["render_value"] = render_value


def slugify_title(title: Optional[str]) -> str:
    if not title or not title.strip():
        return "idea"
    return re.sub(r"\s+", "_", title.strip().lower())


def export_filename(export_prefix: str, title: Optional[str], fmt: str) -> str:
    return f"{export_prefix}_{slugify_title(title)}.{fmt}"


def content_disposition(filename: str) -> str:
    """
    Attachment header value that survives latin-1 header encoding.

    `filename` is an ASCII fallback with accents folded and quotes dropped,
    `filename*` carries the real name (RFC 5987).
    """
    folded = unicodedata.normalize("NFKD", filename).encode("ascii", "ignore").decode("ascii")
    fallback = re.sub(r'["\\\x00-\x1f\x7f]', "", folded) or "export"
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


def top_level_fields(result: Any) -> List[Tuple[str, Any]]:
    if isinstance(result, dict):
        return list(result.items())
    return [("items" if isinstance(result, list) else "result", result)]


def export_json(result: Any) -> str:
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


def export_text(result: Any, title: Optional[str] = None, template: Optional[str] = None) -> str:
    """Plain-text rendering of a result, one section per top-level field."""
    name = template or GENERIC_TEMPLATE
    try:
        tmpl = _env.get_template(f"{name}.txt.j2")
    except TemplateNotFound:
        tmpl = _env.get_template(f"{GENERIC_TEMPLATE}.txt.j2")
    if name != GENERIC_TEMPLATE and not isinstance(result, dict):
        tmpl = _env.get_template(f"{GENERIC_TEMPLATE}.txt.j2")
    return tmpl.render(title=title or "Export", result=result, fields=top_level_fields(result))


def render_export(result: Any, fmt: str, title: Optional[str] = None,
                  template: Optional[str] = None) -> str:
    """
    Render a result in one of EXPORT_FORMATS.

    Raises:
        ValueError: for an unsupported format
    """
    if fmt == "json":
        return export_json(result)
    if fmt == "txt":
        return export_text(result, title=title, template=template)
    raise ValueError(f"Unsupported export format: {fmt}")


def clipboard_text(result: Any) -> str:
    if isinstance(result, str):
        return result
    return export_json(result)
