"""
Knowledge record shaping.

Rows coming out of the knowledge table and payloads posted by the analysis
pipeline use slightly different field spellings; these helpers normalise both
directions.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from dashboard.core.errors import RequestValidationFailed

REQUIRED_FIELDS = ("id", "date", "video_title", "channel name", "model")


def _number(value: Any) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        return 0
    return int(number) if number.is_integer() else number


def _marketcap(project: Dict[str, Any]) -> str:
    return str(project.get("Marketcap") or project.get("marketcap") or "").lower()


def _rpoints(project: Dict[str, Any]) -> float:
    return _number(project.get("Rpoints") or project.get("rpoints"))


def _total_count(project: Dict[str, Any]) -> float:
    return _number(project.get("Total count") or project.get("total_count"))


def _categories(project: Dict[str, Any]) -> List[str]:
    category = project.get("category")
    return category if isinstance(category, list) else []


def normalize_project(project: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "coin_or_project": project.get("coin_or_project"),
        "marketcap": _marketcap(project),
        "rpoints": _rpoints(project),
        "valid": bool(project.get("valid", False)),
        "total_count": _total_count(project),
        "category": _categories(project),
        "timestamps": project.get("timestamps") or [],
        "possible_match": project.get("possible_match") or "",
        "action": project.get("action") or "",
        "found_in": project.get("found_in") or "",
        "coin": project.get("coin"),
    }


def normalize_knowledge_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Shape a stored knowledge row for the dashboard."""
    llm_answer = row.get("llm_answer") or {}
    if isinstance(llm_answer, list):
        llm_answer = llm_answer[0] if llm_answer else {}

    return {
        "id": row.get("id"),
        "date": row.get("date"),
        "transcript": row.get("transcript"),
        "corrected_transcript": row.get("corrected_transcript"),
        "video_title": row.get("video_title"),
        "channel name": row.get("channel name"),
        "link": row.get("link") or "",
        "answer": row.get("answer") or "",
        "summary": row.get("summary") or "",
        "llm_answer": {
            "projects": [normalize_project(p) for p in llm_answer.get("projects") or []],
            "total_count": llm_answer.get("total_count") or 0,
            "total_rpoints": llm_answer.get("total_rpoints") or 0,
        },
        "model": row.get("model"),
        "updated_at": row.get("updated_at") or "",
        "video_type": row.get("video_type") or "video",
    }


def normalize_payload(body: Any) -> List[Dict[str, Any]]:
    """Accept a list, a numerically keyed object or a single object.

    Raises:
        RequestValidationFailed: for non-object payloads or an empty batch.
    """
    if not isinstance(body, (dict, list)):
        raise RequestValidationFailed("Invalid data format", ["Expected an object or array"])

    if isinstance(body, list):
        items = body
    elif any(str(key).lstrip("-").isdigit() for key in body.keys()):
        items = list(body.values())
    else:
        items = [body]

    if not items:
        raise RequestValidationFailed("Empty data", ["No items to process"])
    return items


def validate_items(items: List[Any]) -> None:
    """Collect every missing required field across the batch before failing."""
    violations: List[str] = []
    for item in items:
        if not isinstance(item, dict):
            violations.append("Invalid item: expected an object")
            continue
        for field in REQUIRED_FIELDS:
            if not item.get(field):
                violations.append(f"Missing required field: {field}")

    if violations:
        raise RequestValidationFailed("Validation failed", violations)


def transform_for_insert(item: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Map an analysis payload item onto the knowledge table columns."""
    now = now or datetime.now(timezone.utc)
    answers = item.get("llm_answer")
    first = answers[0] if isinstance(answers, list) and answers and isinstance(answers[0], dict) else {}

    projects = [
        {
            "coin_or_project": project.get("coin_or_project"),
            "marketcap": _marketcap(project),
            "rpoints": _rpoints(project),
            "total_count": _total_count(project),
            "category": _categories(project),
            "coin": project.get("coin"),
        }
        for project in first.get("projects") or []
    ]

    return {
        "date": item.get("date") or now.isoformat(),
        "transcript": item.get("transcript"),
        "video_title": item.get("video_title"),
        "channel name": item.get("channel_name") or item.get("channel name"),
        "link": item.get("link") or "",
        "summary": item.get("answer") or "",
        "llm_answer": {
            "projects": projects,
            "total_count": _number(first.get("total_count")),
            "total_rpoints": _number(first.get("total_Rpoints") or first.get("total_rpoints")),
        },
        "model": item.get("model"),
        "created_at": now.isoformat(),
        "video_type": item.get("video_type") or "video",
    }
