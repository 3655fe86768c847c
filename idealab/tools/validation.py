"""
Validation for YAML tool definitions
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, validator
import yaml

from idealab.config import FEATURE_COSTS, TOOL_CATEGORIES

PAYLOAD_STYLES = ["idea", "business_idea", "form"]


class ToolOption(BaseModel):
    """A configuration field shown on the tool form"""
    name: str = Field(..., description="Key sent in the request payload")
    label: str = Field(..., description="Human-readable field label")
    required: bool = Field(False, description="Generation is refused while this field is blank")
    default: Optional[Any] = Field(None, description="Value used when the field is left blank")
    kind: str = Field("text", description="text, textarea, number, boolean, select or list")
    choices: Optional[List[str]] = Field(None, description="Allowed values for select fields")


class RetryPolicy(BaseModel):
    """Retry settings for tools whose remote call is retried"""
    max_attempts: int = Field(3, ge=1)
    delay: float = Field(1.0, ge=0)
    backoff_multiplier: float = Field(2.0, ge=1)


class ToolDefinition(BaseModel):
    """Complete tool definition structure"""
    id: str = Field(..., description="Tool identifier used in URLs")
    name: str = Field(..., description="Default display name")
    description: str = Field(..., description="What the tool generates")
    category: str = Field(..., description="Catalog section")
    function: str = Field(..., description="Remote function to invoke")
    feature: str = Field(..., description="Credit feature key")
    title_prefix: str = Field(..., description="Prefix for stored content titles")
    export_prefix: str = Field(..., description="Prefix for exported file names")

    idea_input: bool = Field(True, description="Whether the form takes a selected or custom idea")
    payload_style: str = Field("idea", description="How the idea and options are sent")
    options: List[ToolOption] = Field(default_factory=list)

    result_key: Optional[str] = Field(None, description="Dotted path to the result inside the response")
    required_keys: List[str] = Field(default_factory=list, description="Keys the result must contain")

    repeat: int = Field(1, ge=1, description="How many times the function is invoked per run")
    collect_key: Optional[str] = Field(None, description="Key collected from each repeated response")

    retry: Optional[RetryPolicy] = None

    persist: bool = False
    content_type: Optional[str] = Field(None, description="content_type used when persisting")

    export_template: Optional[str] = Field(None, description="Plain-text export template name")
    mock: Optional[Any] = Field(None, description="Sample result shown when the remote call fails")

    @validator('category')
    def validate_category(cls, v):
        if v not in TOOL_CATEGORIES:
            raise ValueError(f"Category must be one of {TOOL_CATEGORIES}")
        return v

    @validator('feature')
    def validate_feature(cls, v):
        if v not in FEATURE_COSTS:
            raise ValueError(f"Unknown credit feature: {v}")
        return v

    @validator('payload_style')
    def validate_payload_style(cls, v):
        if v not in PAYLOAD_STYLES:
            raise ValueError(f"Payload style must be one of {PAYLOAD_STYLES}")
        return v

    @validator('collect_key', always=True)
    def validate_collect_key(cls, v, values):
        if values.get('repeat', 1) > 1 and not v:
            raise ValueError('Repeated tools need a collect_key')
        return v

    @validator('content_type', always=True)
    def validate_content_type(cls, v, values):
        if values.get('persist') and not v:
            raise ValueError('Persisted tools need a content_type')
        return v

    @property
    def required_options(self) -> List[ToolOption]:
        return [option for option in self.options if option.required]


class ToolValidator:
    """Validates YAML tool definitions"""

    @staticmethod
    def load_and_validate(file_path: str) -> ToolDefinition:
        """Load and validate a YAML tool file"""
        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML syntax: {e}")
        except FileNotFoundError:
            raise ValueError(f"Tool file not found: {file_path}")

        try:
            return ToolDefinition(**data)
        except Exception as e:
            raise ValueError(f"Tool validation failed: {e}")

    @staticmethod
    def validate_dict(data: Dict[str, Any]) -> ToolDefinition:
        """Validate a tool definition from a dictionary"""
        try:
            return ToolDefinition(**data)
        except Exception as e:
            raise ValueError(f"Tool validation failed: {e}")

    @staticmethod
    def check_consistency(tool: ToolDefinition) -> List[str]:
        """Non-fatal issues worth reporting"""
        warnings = []

        if not tool.idea_input and tool.payload_style != "form":
            warnings.append(f"{tool.id}: payload_style '{tool.payload_style}' needs an idea, but idea_input is off")

        if tool.mock is not None and tool.required_keys and isinstance(tool.mock, dict):
            missing = [key for key in tool.required_keys if key not in tool.mock]
            if missing:
                warnings.append(f"{tool.id}: mock result is missing required keys {missing}")

        option_names = [option.name for option in tool.options]
        duplicates = {name for name in option_names if option_names.count(name) > 1}
        if duplicates:
            warnings.append(f"{tool.id}: duplicate options {sorted(duplicates)}")

        return warnings


def validate_tool_file(file_path: str) -> tuple[ToolDefinition, List[str]]:
    """Validate a tool file and return the definition plus any warnings"""
    tool = ToolValidator.load_and_validate(file_path)
    return tool, ToolValidator.check_consistency(tool)
