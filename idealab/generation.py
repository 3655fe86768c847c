"""
Generic tool runner.

Every dashboard tool follows the same sequence: validate the form, deduct
credits, call the tool's remote function, fall back to sample data when the
call fails, persist the result and report notices the screen shows as toasts.
The per-tool differences (payload shape, options, result location, retries,
mock data) come from the tool's YAML definition.
"""

import logging
from typing import Any, Dict, List, Optional

from idealab import database as db
from idealab.functions import FunctionsClient, InvalidResponseError
from idealab.i18n import translate
from idealab.models import Idea, Notice, Profile, ToolRequest, ToolResult
from idealab.plans import get_feature_cost, get_required_plan, has_credits, has_feature_access
from idealab.retry import get_error_message, with_retry
from idealab.tools.validation import ToolDefinition, ToolOption

logger = logging.getLogger(__name__)


class ToolRejected(Exception):
    """Form state that must not reach the functions service."""

    def __init__(self, key: str, **params):
        super().__init__(key)
        self.key = key
        self.params = params


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def _coerce_option(option: ToolOption, value: Any) -> Any:
    if option.kind == "list" and isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    if isinstance(value, str):
        return value.strip()
    return value


def resolve_options(tool: ToolDefinition, submitted: Dict[str, Any]) -> Dict[str, Any]:
    """Option values to send: blanks take the default or are left out."""
    values = {}
    for option in tool.options:
        value = submitted.get(option.name)
        if is_blank(value):
            if option.default is None:
                continue
            value = option.default
        values[option.name] = _coerce_option(option, value)
    return values


def missing_required_options(tool: ToolDefinition, submitted: Dict[str, Any]) -> List[ToolOption]:
    return [option for option in tool.required_options if is_blank(submitted.get(option.name))]


def build_payload(tool: ToolDefinition, idea: Optional[Idea], options: Dict[str, Any]) -> Dict[str, Any]:
    """JSON body for the tool's remote function."""
    if tool.payload_style == "idea":
        idea_data = idea.dict(exclude={"created_at"}, exclude_none=True) if idea else {}
        return {"idea": idea_data, **options}
    if tool.payload_style == "business_idea":
        return {"business_idea": idea.description if idea else "", **options}
    return dict(options)


def extract_result(data: Any, path: Optional[str]) -> Any:
    """Follow a dotted path ("pitchDeck.slides") into a response."""
    if not path:
        return data
    node = data
    for part in path.split("."):
        if not isinstance(node, dict) or part not in node:
            raise InvalidResponseError(f"invalid response: missing '{path}'")
        node = node[part]
    return node


def check_required_keys(tool: ToolDefinition, result: Any) -> None:
    if not tool.required_keys:
        return
    if not isinstance(result, dict):
        raise InvalidResponseError(f"invalid response: expected an object with {tool.required_keys}")
    missing = [key for key in tool.required_keys if result.get(key) is None]
    if missing:
        raise InvalidResponseError(f"invalid response: missing {missing}")


class ToolRunner:
    """Runs one tool for one signed-in user."""

    def __init__(self, tool: ToolDefinition, client: FunctionsClient):
        self.tool = tool
        self.client = client

    def display_name(self, language: str) -> str:
        return translate(f"toolNames.{self.tool.id}", language, default=self.tool.name)

    async def resolve_idea(self, user_id: str, request: ToolRequest, language: str) -> Optional[Idea]:
        if not self.tool.idea_input:
            return None
        if request.use_custom_idea:
            return Idea(title=translate("tools.customIdeaTitle", language),
                        description=request.custom_idea.strip())
        data = await db.get_idea(user_id, request.idea_id)
        if data is None:
            raise ToolRejected("tools.ideaNotFound")
        return Idea(**data)

    def validate(self, profile: Optional[Profile], request: ToolRequest) -> int:
        """
        Check form state and credits before anything leaves the service.

        Returns the cost the run will be charged.

        Raises:
            ToolRejected: with the translation key of the notice to show
        """
        tool = self.tool
        if tool.idea_input:
            if request.use_custom_idea:
                if is_blank(request.custom_idea):
                    raise ToolRejected("tools.customIdeaRequired")
            elif is_blank(request.idea_id):
                raise ToolRejected("tools.selectIdea")

        missing = missing_required_options(tool, request.options)
        if missing:
            raise ToolRejected("tools.fieldRequired", field=missing[0].label)

        if profile is None:
            raise ToolRejected("tools.loginRequired")
        if not has_feature_access(profile, tool.feature):
            raise ToolRejected("tools.planRequired", plan=get_required_plan(tool.feature))

        cost = get_feature_cost(profile, tool.feature)
        if not has_credits(profile, tool.feature):
            raise ToolRejected("tools.notEnoughCredits", cost=cost)
        return cost

    async def _invoke_once(self, payload: Dict[str, Any]) -> Any:
        data = await self.client.invoke(self.tool.function, payload)
        result = extract_result(data, self.tool.result_key)
        check_required_keys(self.tool, result)
        return result

    async def _collect(self, payload: Dict[str, Any]) -> List[Any]:
        collected = []
        for _ in range(self.tool.repeat):
            result = await self._invoke_once(payload)
            value = result.get(self.tool.collect_key) if isinstance(result, dict) else None
            if not is_blank(value):
                collected.append(value.strip() if isinstance(value, str) else value)
        if not collected:
            raise InvalidResponseError(f"invalid response: no '{self.tool.collect_key}' returned")
        return collected

    async def generate(self, payload: Dict[str, Any]) -> Any:
        """Call the remote function, retrying when the tool asks for it."""
        if self.tool.repeat > 1:
            operation = lambda: self._collect(payload)
        else:
            operation = lambda: self._invoke_once(payload)

        policy = self.tool.retry
        if policy is None:
            return await operation()

        def _log_retry(attempt: int, error: BaseException):
            logger.info(f"Retrying {self.tool.function} after attempt {attempt}: {error}")

        return await with_retry(operation,
                                max_attempts=policy.max_attempts,
                                delay=policy.delay,
                                backoff_multiplier=policy.backoff_multiplier,
                                on_retry=_log_retry)

    async def run(self, user_id: str, profile: Optional[Profile], request: ToolRequest) -> ToolResult:
        tool = self.tool
        language = request.language or (profile.language if profile else None)
        name = self.display_name(language)
        outcome = ToolResult(tool=tool.id, status="rejected")

        try:
            cost = self.validate(profile, request)
            idea = await self.resolve_idea(user_id, request, language)
        except ToolRejected as e:
            logger.info(f"Rejected {tool.id} for {user_id}: {e.key}")
            outcome.reason = e.key
            outcome.notices.append(Notice(level="error", message=translate(e.key, language, **e.params)))
            return outcome

        title = f"{tool.title_prefix} - {idea.title}" if idea and idea.title else tool.title_prefix
        outcome.title = title

        try:
            remaining = await self.client.deduct_credits_and_log(
                user_id=user_id,
                amount=cost,
                feature=tool.feature,
                description=translate("tools.description", language, tool=name,
                                      title=idea.title if idea else tool.name),
                item_id=idea.id if idea else None,
            )
        except Exception as e:
            logger.error(f"Credit deduction failed for {tool.id} ({user_id}): {e}")
            outcome.status = "failed"
            outcome.reason = "tools.creditsError"
            outcome.notices.append(Notice(level="error", message=translate("tools.creditsError", language)))
            return outcome

        outcome.credits_charged = cost
        outcome.credits_remaining = remaining if remaining is not None else profile.credits - cost

        payload = build_payload(tool, idea, resolve_options(tool, request.options))
        try:
            outcome.result = await self.generate(payload)
            outcome.status = "generated"
        except Exception as e:
            logger.error(f"Error generating {tool.id}: {e}")
            if tool.mock is None:
                outcome.status = "failed"
                outcome.reason = "tools.generationError"
                message = get_error_message(e, language)
                if isinstance(e, InvalidResponseError):
                    message = translate("tools.invalidResponse", language)
                outcome.notices.append(Notice(level="error",
                                              message=f"{translate('tools.generationError', language, tool=name)} {message}"))
                return outcome
            logger.warning(f"Using sample data for {tool.id}")
            outcome.result = tool.mock
            outcome.is_mock = True
            outcome.status = "mock"
            outcome.notices.append(Notice(level="warning", message=translate("tools.usingSampleData", language)))

        if tool.persist and not outcome.is_mock:
            try:
                outcome.content_id = await db.save_generated_content(
                    user_id, tool.content_type, title, outcome.result,
                    idea_id=idea.id if idea else None)
            except Exception as e:
                logger.warning(f"Could not save {tool.id} result for {user_id}: {e}")

        if outcome.status == "generated":
            outcome.notices.append(Notice(level="success", message=translate("tools.generated", language, tool=name)))
        if cost:
            outcome.notices.append(Notice(level="info", message=translate("tools.creditsCharged", language, cost=cost)))
        return outcome
