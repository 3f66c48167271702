"""Tests for shopping list export functionality."""

import json

import pytest

from recipe_shopper.export import (
    export_shopping_list,
    export_to_json,
    export_to_markdown,
    format_markdown,
)
from recipe_shopper.planner import PlannedMeal, build_shopping_list


@pytest.fixture
def shopping_list(canonicalizer, categorizer):
    """A consolidated list with a produce line, a review line and a parse failure."""
    meals = [
        PlannedMeal("pancakes", ("2 cups flour", "2 eggs", "2 cups"), 4, 4),
        PlannedMeal("soup", ("1 onion", "a pinch of love"), 2, 2),
    ]
    return build_shopping_list(meals, canonicalizer, categorizer)


class TestExportToJson:
    """Tests for JSON export."""

    def test_basic_export(self, shopping_list, tmp_path):
        filepath = tmp_path / "list.json"
        export_to_json(shopping_list, filepath)

        data = json.loads(filepath.read_text(encoding="utf-8"))
        assert "exported_at" in data
        assert len(data["items"]) == 5
        assert data["summary"]["total_items"] == 5
        assert data["summary"]["needs_review"] == 2
        assert data["summary"]["recipes"] == ["pancakes", "soup"]

    def test_items_carry_units_and_quantities(self, shopping_list, tmp_path):
        filepath = tmp_path / "list.json"
        export_to_json(shopping_list, filepath)

        items = {item["name"]: item for item in json.loads(filepath.read_text())["items"]}
        assert items["flour"]["quantity"] == "2"
        assert items["flour"]["unit"] == "cup"
        assert items["2 cups"]["ingredient_id"] is None
        assert items["2 cups"]["raw_texts"] == ["2 cups"]

    def test_with_plan_title(self, shopping_list, tmp_path):
        filepath = tmp_path / "list.json"
        export_to_json(shopping_list, filepath, plan_title="Week 42")
        assert json.loads(filepath.read_text())["plan_title"] == "Week 42"


class TestExportToMarkdown:
    """Tests for Markdown export."""

    def test_basic_export(self, shopping_list, tmp_path):
        filepath = tmp_path / "list.md"
        export_to_markdown(shopping_list, filepath)

        content = filepath.read_text(encoding="utf-8")
        assert "# Shopping List" in content
        assert "- **Items:** 5" in content
        assert "- **Needs review:** 2" in content

    def test_with_plan_title(self, shopping_list, tmp_path):
        filepath = tmp_path / "list.md"
        export_to_markdown(shopping_list, filepath, plan_title="Week 42")
        assert "# Week 42" in filepath.read_text()

    def test_sections_in_category_order(self, shopping_list):
        content = format_markdown(shopping_list)
        positions = [
            content.index(f"## {section}")
            for section in ("Produce", "Dairy & Eggs", "Pantry", "Other")
        ]
        assert positions == sorted(positions)

    def test_line_markers(self, shopping_list):
        content = format_markdown(shopping_list)
        assert "- [ ] **2 cups flour** (pancakes)" in content
        assert "- [ ] ⚠ **1 pinch love** (needs review; from soup)" in content
        assert "- [ ] ⚠ *2 cups* (could not parse; from pancakes)" in content


class TestExportShoppingList:
    """Tests for the main export function."""

    def test_auto_detect_json(self, shopping_list, tmp_path):
        filepath = tmp_path / "list.json"
        assert export_shopping_list(shopping_list, filepath) == "json"
        json.loads(filepath.read_text())

    def test_auto_detect_markdown(self, shopping_list, tmp_path):
        filepath = tmp_path / "list.markdown"
        assert export_shopping_list(shopping_list, filepath) == "md"

    def test_unknown_extension_defaults_to_markdown(self, shopping_list, tmp_path):
        filepath = tmp_path / "list.txt"
        assert export_shopping_list(shopping_list, filepath) == "md"
        assert filepath.read_text().startswith("# Shopping List")

    def test_explicit_format(self, shopping_list, tmp_path):
        filepath = tmp_path / "list.txt"
        assert export_shopping_list(shopping_list, filepath, format="json") == "json"

    def test_unsupported_format(self, shopping_list, tmp_path):
        with pytest.raises(ValueError, match="Unsupported export format"):
            export_shopping_list(shopping_list, tmp_path / "list.pdf", format="pdf")
