"""
Utility functions for loading the tool catalog from YAML definitions
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

from .validation import ToolDefinition, validate_tool_file

logger = logging.getLogger(__name__)

DEFINITIONS_DIR = Path(__file__).parent / "definitions"

# Parsed definitions keyed by tool id
_catalog: Optional[Dict[str, ToolDefinition]] = None


def _get_definition_path(tool_id: str) -> Path:
    return DEFINITIONS_DIR / f"{tool_id}.yaml"


def load_catalog(reload: bool = False) -> Dict[str, ToolDefinition]:
    """
    Load every tool definition in the definitions directory.

    Invalid files are logged and skipped so one broken tool doesn't take the
    whole catalog down.
    """
    global _catalog
    if _catalog is not None and not reload:
        return _catalog

    catalog = {}
    for yaml_file in sorted(DEFINITIONS_DIR.glob("*.yaml")):
        try:
            tool, warnings = validate_tool_file(str(yaml_file))
        except ValueError as e:
            logger.error(f"Skipping tool definition {yaml_file.name}: {e}")
            continue
        if warnings:
            logger.warning(f"Tool warnings for {tool.id}: {warnings}")
        if tool.id != yaml_file.stem:
            logger.warning(f"Tool id {tool.id} does not match file name {yaml_file.name}")
        catalog[tool.id] = tool

    _catalog = catalog
    return _catalog


def get_tool(tool_id: str) -> ToolDefinition:
    """
    Get the definition of a single tool

    Raises:
        ValueError: if no tool with that id exists
    """
    catalog = load_catalog()
    if tool_id not in catalog:
        raise ValueError(f"No tool found for id: {tool_id}")
    return catalog[tool_id]


def list_tools(category: Optional[str] = None) -> List[ToolDefinition]:
    """All tools, optionally restricted to one category"""
    tools = list(load_catalog().values())
    if category:
        tools = [tool for tool in tools if tool.category == category]
    return tools


def validate_tool(tool_id: str) -> tuple[bool, list]:
    """
    Validate a specific tool definition

    Returns:
        tuple: (is_valid, list_of_warnings_or_errors)
    """
    path = _get_definition_path(tool_id)
    if not path.exists():
        return False, [f"Tool file not found: {path.name}"]
    try:
        _, warnings = validate_tool_file(str(path))
        return True, warnings
    except ValueError as e:
        return False, [str(e)]
