"""
Knowledge aggregation used by the analytics page.
"""

from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Set


def _day(value: Any) -> str:
    text = str(value or "")
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return text[:10]


def _projects(item: Dict[str, Any]) -> List[Dict[str, Any]]:
    llm_answer = item.get("llm_answer") or {}
    return llm_answer.get("projects") or []


def _sorted_names(values: Iterable[str]) -> List[str]:
    return sorted(values, key=lambda v: v.lower())


def build_knowledge_analytics(items: List[Dict[str, Any]],
                              channels: Optional[List[str]] = None,
                              models: Optional[List[str]] = None) -> Dict[str, Any]:
    """Aggregate rpoints per project across normalised knowledge items.

    Channel and model lists always cover every item so selectors can offer
    them; the aggregates only cover the items matching the filters.
    """
    all_channels: Set[str] = set()
    all_models: Set[str] = set()
    for item in items:
        if item.get("channel name"):
            all_channels.add(item["channel name"])
        all_models.add(item.get("model") or "Unknown")

    project_points: Dict[str, float] = defaultdict(float)
    trends: Dict[str, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    category_counts: Dict[str, int] = defaultdict(int)
    coin_categories: Dict[str, Set[str]] = {}
    mentions: Dict[str, List[Dict[str, Any]]] = defaultdict(list)

    for item in items:
        channel = item.get("channel name")
        model = item.get("model") or "Unknown"
        if channels and channel not in channels:
            continue
        if models and model not in models:
            continue

        date = _day(item.get("date"))
        for project in _projects(item):
            name = str(project.get("coin_or_project") or "").lower().strip()
            if not name:
                continue
            try:
                rpoints = float(project.get("rpoints") or project.get("Rpoints") or 0)
            except (TypeError, ValueError):
                continue
            if rpoints <= 0:
                continue

            mentions[name].append({"date": date, "channel": channel, "model": model})
            trends[name][date] += rpoints
            project_points[name] += rpoints

            category = project.get("category")
            if isinstance(category, list):
                coin_categories.setdefault(name, set())
                for cat in category:
                    coin_categories[name].add(cat)
                    category_counts[cat] += 1

    project_distribution = sorted(
        ({"name": name, "value": round(value, 2)} for name, value in project_points.items()),
        key=lambda row: row["value"],
        reverse=True,
    )
    category_distribution = sorted(
        ({"name": name, "value": count} for name, count in category_counts.items()),
        key=lambda row: row["value"],
        reverse=True,
    )

    coin_rows = []
    for coin, categories in coin_categories.items():
        coin_mentions = mentions.get(coin, [])
        for mention in coin_mentions:
            coin_rows.append({
                "coin": coin,
                "categories": sorted(categories),
                "channel": mention["channel"],
                "model": mention["model"],
                "date": mention["date"],
                "rpoints": project_points.get(coin, 0),
                "total_count": len(coin_mentions),
            })
    coin_rows.sort(key=lambda row: row["rpoints"], reverse=True)

    return {
        "projectDistribution": project_distribution,
        "projectTrends": {
            name: [{"date": date, "rpoints": points} for date, points in sorted(by_date.items())]
            for name, by_date in trends.items()
        },
        "categoryDistribution": category_distribution,
        "coinCategories": coin_rows,
        "channels": _sorted_names(all_channels),
        "models": _sorted_names(all_models),
        "uniqueCoins": len(project_points),
    }
