"""
Translation lookup for user-facing strings.

Catalogs are nested YAML dictionaries, one file per language under
idealab/locales. Keys are dotted paths ("tools.generated") and values may
carry {{name}} placeholders.
"""

import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from idealab.config import DEFAULT_LANGUAGE, SUPPORTED_LANGUAGES

logger = logging.getLogger(__name__)

LOCALES_DIR = Path(__file__).parent / "locales"

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# Loaded catalogs keyed by language id
_catalogs: Dict[str, Dict[str, Any]] = {}


def supported_language_ids() -> list:
    return [lang["id"] for lang in SUPPORTED_LANGUAGES]


def normalize_language(language: Optional[str]) -> str:
    """Map 'pt-BR', 'EN' etc. onto a supported language id."""
    if not language:
        return DEFAULT_LANGUAGE
    base = language.strip().lower().replace("_", "-").split("-")[0]
    if base in supported_language_ids():
        return base
    return DEFAULT_LANGUAGE


def load_catalog(language: str) -> Dict[str, Any]:
    """Get the full catalog for a language (loaded once, then cached)."""
    language = normalize_language(language)
    if language not in _catalogs:
        path = LOCALES_DIR / f"{language}.yaml"
        try:
            with open(path, "r", encoding="utf-8") as f:
                _catalogs[language] = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load locale catalog {path}: {e}")
            _catalogs[language] = {}
    return _catalogs[language]


def reload_catalogs() -> None:
    """Drop cached catalogs so edited locale files are picked up."""
    _catalogs.clear()


def _lookup(catalog: Dict[str, Any], key: str) -> Optional[str]:
    node: Any = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


def interpolate(text: str, params: Dict[str, Any]) -> str:
    return _PLACEHOLDER.sub(lambda m: str(params.get(m.group(1), m.group(0))), text)


def translate(key: str, language: Optional[str] = None, default: Optional[str] = None, **params) -> str:
    """
    Look up a string for the given language.

    Falls back to the default language, then to `default`, then to the key
    itself so a missing entry is visible rather than blank.
    """
    language = normalize_language(language)
    text = _lookup(load_catalog(language), key)
    if text is None and language != DEFAULT_LANGUAGE:
        text = _lookup(load_catalog(DEFAULT_LANGUAGE), key)
    if text is None:
        text = default if default is not None else key
    return interpolate(text, params)
