"""Shopping list export in various formats."""

import json
from datetime import datetime
from itertools import groupby
from pathlib import Path
from typing import Any

from .planner import ShoppingListLine


def export_to_json(
    lines: list[ShoppingListLine],
    filepath: str | Path,
    *,
    plan_title: str | None = None,
) -> None:
    """
    Export shopping list to JSON format.

    Args:
        lines: Shopping list lines
        filepath: Output file path
        plan_title: Optional plan title
    """
    data: dict[str, Any] = {
        "exported_at": datetime.now().isoformat(),
        "plan_title": plan_title,
        "items": [line.to_dict() for line in lines],
        "summary": {
            "total_items": len(lines),
            "needs_review": sum(1 for line in lines if line.needs_review),
            "recipes": sorted({rid for line in lines for rid in line.source_recipe_ids}),
        },
    }

    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def format_markdown(lines: list[ShoppingListLine], *, plan_title: str | None = None) -> str:
    """
    Render a shopping list as Markdown, one section per category.

    Lines needing review are unchecked and marked with a warning so the
    list still renders when some input could not be understood.
    """
    out: list[str] = []

    # Header
    out.append(f"# {plan_title or 'Shopping List'}")
    out.append("")
    out.append(f"*Generated: {datetime.now().strftime('%Y-%m-%d %H:%M')}*")
    out.append("")

    review_count = sum(1 for line in lines if line.needs_review)
    out.append(f"- **Items:** {len(lines)}")
    out.append(f"- **Needs review:** {review_count}")
    out.append("")

    for category, section in groupby(lines, key=lambda line: line.category):
        out.append(f"## {category.value}")
        out.append("")
        for line in section:
            sources = ", ".join(sorted(line.source_recipe_ids))
            if line.canonical_ingredient_id is None:
                out.append(f"- [ ] ⚠ *{line.display_name}* (could not parse; from {sources})")
            elif line.needs_review:
                out.append(f"- [ ] ⚠ **{line}** (needs review; from {sources})")
            else:
                out.append(f"- [ ] **{line}** ({sources})")
        out.append("")

    return "\n".join(out)


def export_to_markdown(
    lines: list[ShoppingListLine],
    filepath: str | Path,
    *,
    plan_title: str | None = None,
) -> None:
    """
    Export shopping list to Markdown format.

    Args:
        lines: Shopping list lines (sorted by category)
        filepath: Output file path
        plan_title: Optional plan title
    """
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(format_markdown(lines, plan_title=plan_title))


def export_shopping_list(
    lines: list[ShoppingListLine],
    filepath: str | Path,
    *,
    plan_title: str | None = None,
    format: str | None = None,
) -> str:
    """
    Export shopping list to file.

    Format is auto-detected from file extension if not specified.

    Args:
        lines: Shopping list lines
        filepath: Output file path
        plan_title: Optional plan title
        format: Output format (json, md) - auto-detected if None

    Returns:
        The format used for export

    Raises:
        ValueError: If the format is not supported
    """
    path = Path(filepath)

    # Auto-detect format from extension
    if format is None:
        ext = path.suffix.lower()
        format_map = {
            ".json": "json",
            ".md": "md",
            ".markdown": "md",
        }
        format = format_map.get(ext, "md")

    if format == "json":
        export_to_json(lines, path, plan_title=plan_title)
    elif format in ("md", "markdown"):
        export_to_markdown(lines, path, plan_title=plan_title)
        format = "md"
    else:
        raise ValueError(f"Unsupported export format: {format}")

    return format
