"""Normalization of ZenHub and GitHub timeline items into ActivityEvents."""

import logging
from collections.abc import Callable
from typing import Any

from ..github_client.events import parse_timeline_node
from ..utils.date_parser import parse_rfc3339
from ..utils.text import quote, truncate_title
from ..zenhub_client.models import ZenHubTimelineItem
from .models import ActivityEvent, EventSource

logger = logging.getLogger(__name__)


def _mapping(data: dict[str, Any], field: str) -> dict[str, Any]:
    value = data.get(field)
    return value if isinstance(value, dict) else {}


def _string(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _number(value: Any) -> int:
    # JSON numbers may arrive as floats
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return int(value)


def _linked_ref(
    data: dict[str, Any], item_field: str, repo_field: str
) -> tuple[str, str]:
    """Return ``(repo#number, title)`` for a linked item, or ``("", "")``."""
    item = _mapping(data, item_field)
    number = _number(item.get("number"))
    repo = _string(_mapping(data, repo_field).get("name"))
    if not repo or number <= 0:
        return "", ""
    return f"{repo}#{number}", _string(item.get("title"))


def _describe_linked(
    data: dict[str, Any],
    item_field: str,
    repo_field: str,
    verb: str,
    with_title: bool,
) -> str:
    ref, title = _linked_ref(data, item_field, repo_field)
    if not ref:
        return verb
    if with_title and title:
        return f"{verb} {ref} {quote(truncate_title(title))}"
    return f"{verb} {ref}"


def _set_estimate(data: dict[str, Any]) -> str:
    current = data.get("current_value")
    if isinstance(current, str):
        return f"set estimate to {current}"
    previous = data.get("previous_value")
    if isinstance(previous, str):
        return f"cleared estimate (was {previous})"
    return "changed estimate"


def _set_priority(data: dict[str, Any]) -> str:
    name = _mapping(data, "priority").get("name")
    if isinstance(name, str):
        return f"set priority to {quote(name)}"
    return "set priority"


def _remove_priority(data: dict[str, Any]) -> str:
    name = _mapping(data, "previous_priority").get("name")
    if isinstance(name, str):
        return f"cleared priority (was {quote(name)})"
    return "cleared priority"


def _move_pipeline(data: dict[str, Any]) -> str:
    source = _string(_mapping(data, "from_pipeline").get("name"))
    target = _string(_mapping(data, "to_pipeline").get("name"))
    if source and target:
        description = f"moved from {quote(source)} to {quote(target)}"
    elif target:
        description = f"moved to {quote(target)}"
    else:
        description = "moved to another pipeline"

    pr_ref, _ = _linked_ref(data, "pull_request", "pull_request_repository")
    if pr_ref:
        description += f" via PR {pr_ref}"
    return description


def _named(field: str, attr: str, verb: str, shorten: bool = False):
    def describe(data: dict[str, Any]) -> str:
        value = _mapping(data, field).get(attr)
        if isinstance(value, str):
            return f"{verb} {quote(truncate_title(value) if shorten else value)}"
        return verb

    return describe


def _linked(item_field: str, repo_field: str, verb: str, with_title: bool):
    def describe(data: dict[str, Any]) -> str:
        return _describe_linked(data, item_field, repo_field, verb, with_title)

    return describe


ZENHUB_DESCRIBERS: dict[str, Callable[[dict[str, Any]], str]] = {
    "issue.set_estimate": _set_estimate,
    "issue.set_priority": _set_priority,
    "issue.remove_priority": _remove_priority,
    "issue.connect_issue_to_pr": _linked(
        "pull_request", "pull_request_repository", "connected PR", True
    ),
    "issue.disconnect_issue_from_pr": _linked(
        "pull_request", "pull_request_repository", "disconnected PR", False
    ),
    "issue.connect_pr_to_issue": _linked(
        "issue", "issue_repository", "connected to issue", True
    ),
    "issue.disconnect_pr_from_issue": _linked(
        "issue", "issue_repository", "disconnected from issue", False
    ),
    "issue.change_pipeline": _move_pipeline,
    "issue.transfer_pipeline": _move_pipeline,
    "issue.add_to_sprint": _named("sprint", "name", "added to sprint"),
    "issue.remove_from_sprint": _named("sprint", "name", "removed from sprint"),
    "issue.add_to_epic": _named("epic", "title", "added to epic", shorten=True),
    "issue.remove_from_epic": _named(
        "epic", "title", "removed from epic", shorten=True
    ),
    "issue.add_blocking_issue": _linked(
        "blocking_issue", "blocking_issue_repository", "added blocking issue", True
    ),
    "issue.remove_blocking_issue": _linked(
        "blocking_issue",
        "blocking_issue_repository",
        "removed blocking issue",
        False,
    ),
}


def humanize_event_key(key: str) -> str:
    """Turn an unrecognized key such as ``issue.set_foo`` into ``set foo``."""
    return key.removeprefix("issue.").replace("_", " ")


def describe_zenhub_event(key: str, data: dict[str, Any] | None) -> str:
    """Describe a ZenHub timeline event in one line."""
    describer = ZENHUB_DESCRIBERS.get(key)
    if describer is None:
        return humanize_event_key(key)
    return describer(data or {})


def extract_actor(data: dict[str, Any] | None) -> str:
    """Return ``data.github_user.login`` or an empty string."""
    if not data:
        return ""
    return _string(_mapping(data, "github_user").get("login"))


def normalize_zenhub_item(
    item: ZenHubTimelineItem | dict[str, Any],
) -> ActivityEvent | None:
    """Convert a raw ZenHub timeline item into an ActivityEvent.

    Items whose ``createdAt`` cannot be parsed are dropped.
    """
    if isinstance(item, dict):
        item = ZenHubTimelineItem.model_validate(item)

    moment = parse_rfc3339(item.created_at) if item.created_at else None
    if moment is None:
        logger.debug("Dropping ZenHub item %s with bad createdAt", item.id)
        return None

    description = describe_zenhub_event(item.key, item.data) or item.key
    return ActivityEvent(
        time=moment,
        source=EventSource.ZENHUB,
        description=description,
        actor=extract_actor(item.data) or None,
        raw={"key": item.key, "data": item.data},
    )


def normalize_github_node(node: dict[str, Any]) -> ActivityEvent | None:
    """Convert a raw GitHub timeline node into an ActivityEvent.

    Unsupported ``__typename`` tags and nodes without a timestamp give None.
    """
    event = parse_timeline_node(node)
    if event is None:
        return None

    moment = event.occurred_at()
    if moment is None:
        return None

    return ActivityEvent(
        time=moment,
        source=EventSource.GITHUB,
        description=event.describe(),
        actor=event.actor_login() or None,
    )
