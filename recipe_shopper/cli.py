"""CLI entry point for Recipe Shopper."""

from itertools import groupby
from pathlib import Path

import click

from . import __version__
from .canonicalizer import IngredientCanonicalizer, JsonRegistryStore, RegistryError
from .categorizer import Categorizer, Category, CategoryStoreError
from .config import CATEGORIES_FILE, LOG_LEVEL, PANTRY_FILE, REGISTRY_FILE
from .export import export_shopping_list
from .logging_config import configure_logging, plan_context
from .pantry import (
    DEFAULT_STAPLES,
    add_staples,
    exclude_ingredients,
    load_pantry,
    remove_staples,
    reset_pantry,
    resolve_staples,
    split_pantry_lines,
)
from .planner import PlanError, ShoppingListLine, build_shopping_list, load_plan_file
from .recipe_parser import ParsedIngredientLine, ParseResult, parse_ingredient_line, render_line
from .scaler import format_scale_info, scale_factor, scale_line
from .units import EACH


def get_canonicalizer() -> IngredientCanonicalizer:
    """Canonicalizer backed by the registry file."""
    return IngredientCanonicalizer(store=JsonRegistryStore(REGISTRY_FILE))


def get_categorizer() -> Categorizer:
    """Categorizer backed by the category overrides file."""
    return Categorizer(CATEGORIES_FILE)


def display_parse_result(i: int, result: ParseResult) -> None:
    """Display one parsed ingredient line."""
    if not isinstance(result, ParsedIngredientLine):
        click.echo(f"\n{i}. ✗ {result.raw_text}")
        click.echo(f"   Needs manual entry: {result.reason}")
        return

    click.echo(f"\n{i}. ✓ {result.raw_text}")
    click.echo(f"   Quantity:   {result.quantity}")
    unit = "-" if result.unit == EACH else f"{result.unit.name} ({result.unit.dimension.value})"
    click.echo(f"   Unit:       {unit}")
    click.echo(f"   Ingredient: {result.ingredient_text}")
    if result.descriptors:
        click.echo(f"   Notes:      {', '.join(result.descriptors)}")
    click.echo(f"   Confidence: {result.confidence:.2f}")


def display_shopping_list(lines: list[ShoppingListLine], pantry: list[ShoppingListLine]) -> None:
    """Display a shopping list grouped by category."""
    click.echo()
    click.echo("=" * 60)
    click.echo("SHOPPING LIST")
    click.echo("=" * 60)

    for category, section in groupby(lines, key=lambda line: line.category):
        click.echo(f"\n{category.value}")
        for line in section:
            marker = "⚠️ " if line.needs_review else "• "
            sources = ", ".join(sorted(line.source_recipe_ids))
            if line.canonical_ingredient_id is None:
                click.echo(f"  {marker}{line.display_name}  (could not parse; from {sources})")
            else:
                click.echo(f"  {marker}{line}  ({sources})")

    if pantry:
        click.echo("\nAssumed in pantry:")
        for line in pantry:
            click.echo(f"  ✓ {line}")

    review_count = sum(1 for line in lines if line.needs_review)
    click.echo()
    click.echo("-" * 60)
    click.echo(f"Items: {len(lines)} | Needs review: {review_count} | Pantry: {len(pantry)}")
    click.echo("-" * 60)


# ============================================================================
# Main CLI Group
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="recipe-shopper")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines")
def cli(verbose: bool, json_logs: bool):
    """Recipe-to-shopping-list CLI tool.

    Parse free-text ingredient lines, scale them, and merge several recipes
    into one categorized shopping list.
    """
    configure_logging("DEBUG" if verbose else LOG_LEVEL, json_format=json_logs)


# ============================================================================
# Parsing Commands
# ============================================================================


@cli.command("parse")
@click.argument("lines", nargs=-1)
@click.option("--file", "-f", "file_path", type=click.Path(exists=True), help="Read lines from file")
def parse_cmd(lines: tuple[str, ...], file_path: str | None):
    """Parse ingredient lines into quantity, unit and ingredient.

    Examples:

    \b
        recipe-shopper parse "2 1/2 cups diced yellow onion, finely chopped"
        recipe-shopper parse "1-2 cloves garlic" "salt to taste"
        recipe-shopper parse --file ingredients.txt
    """
    raw_lines = list(lines)
    if file_path:
        text = Path(file_path).read_text(encoding="utf-8")
        raw_lines.extend(line for line in text.splitlines() if line.strip())

    if not raw_lines:
        click.echo("✗ Provide ingredient lines or use --file.", err=True)
        raise SystemExit(1)

    results = [parse_ingredient_line(line) for line in raw_lines]
    for i, result in enumerate(results, 1):
        display_parse_result(i, result)

    failed = sum(1 for result in results if not result.ok)
    click.echo()
    click.echo(f"Parsed: {len(results) - failed} | Needs manual entry: {failed}")


@cli.command("scale")
@click.argument("line")
@click.option("--base", "-b", "base_servings", type=int, required=True, help="Recipe servings")
@click.option("--target", "-t", "target_servings", type=int, required=True, help="Servings wanted")
def scale_cmd(line: str, base_servings: int, target_servings: int):
    """Scale one ingredient line between serving counts.

    Example:

        recipe-shopper scale "1 1/2 cups flour" --base 4 --target 6
    """
    result = parse_ingredient_line(line)
    if not isinstance(result, ParsedIngredientLine):
        click.echo(f"✗ Could not parse {line!r}: {result.reason}", err=True)
        raise SystemExit(1)

    try:
        scaled = scale_line(result, base_servings, target_servings)
        factor = scale_factor(base_servings, target_servings)
    except ValueError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None

    click.echo(render_line(scaled))
    click.echo(format_scale_info(factor, base_servings, target_servings))


# ============================================================================
# Planning Commands
# ============================================================================


@cli.command("plan")
@click.argument("plan_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", type=click.Path(), help="Export the list to a file")
@click.option("--format", "-f", "fmt", type=click.Choice(["json", "md"]), help="Export format")
@click.option("--skip-pantry", is_flag=True, help="Keep pantry staples on the list")
@click.option("--title", help="Title for the exported list")
@click.option("--exclude", "-x", multiple=True, help="Leave an ingredient off the list")
def plan_cmd(
    plan_file: str,
    output: str | None,
    fmt: str | None,
    skip_pantry: bool,
    title: str | None,
    exclude: tuple[str, ...],
):
    """Build a shopping list from a JSON meal plan.

    The plan file lists meals with their lines and servings:

    \b
        {"meals": [{"recipe_id": "pancakes", "base_servings": 4,
                    "target_servings": 8, "lines": ["2 cups flour"]}]}
    """
    path = Path(plan_file)

    try:
        meals = load_plan_file(path)
        canonicalizer = get_canonicalizer()
        with plan_context(path.stem):
            shopping_list = build_shopping_list(
                meals, canonicalizer=canonicalizer, categorizer=get_categorizer()
            )
        if exclude:
            excluded = resolve_staples(exclude, canonicalizer)
            shopping_list = exclude_ingredients(shopping_list, excluded)
    except (PlanError, RegistryError, CategoryStoreError) as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None
    except ValueError as e:
        click.echo(f"✗ Invalid --exclude: {e}", err=True)
        raise SystemExit(1) from None

    pantry_lines: list[ShoppingListLine] = []
    if not skip_pantry:
        pantry_lines, shopping_list = split_pantry_lines(shopping_list, load_pantry(PANTRY_FILE))

    display_shopping_list(shopping_list, pantry_lines)

    if output:
        used = export_shopping_list(
            shopping_list, output, plan_title=title or path.stem, format=fmt
        )
        click.echo(f"✓ Exported {len(shopping_list)} items to {output} ({used})")


# ============================================================================
# Registry Commands
# ============================================================================


@cli.group()
def registry():
    """Curate the canonical ingredient registry.

    New ingredients found while planning are added automatically and
    flagged for review. Use these commands to categorize them and to map
    other spellings onto existing ingredients.
    """
    pass


@registry.command("list")
@click.option("--review", is_flag=True, help="Only ingredients needing review")
def registry_list(review: bool):
    """List known ingredients."""
    try:
        canonicalizer = get_canonicalizer()
        entries = canonicalizer.needs_review() if review else canonicalizer.entries()
    except RegistryError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None

    click.echo()
    click.echo("INGREDIENTS NEEDING REVIEW" if review else "INGREDIENTS")
    click.echo("=" * 50)

    if not entries:
        click.echo("  (none)")

    for entry in entries:
        flag = " ⚠️" if entry.needs_review else ""
        click.echo(f"  {entry.id:<24} {entry.category.value}{flag}")

    click.echo()
    click.echo(f"Total: {len(entries)} ingredients")


@registry.command("add-synonym")
@click.argument("ingredient_id")
@click.argument("synonym")
def registry_add_synonym(ingredient_id: str, synonym: str):
    """Map another spelling onto an ingredient.

    Example:

        recipe-shopper registry add-synonym scallion "salad onion"
    """
    try:
        get_canonicalizer().add_synonym(ingredient_id, synonym)
    except KeyError:
        click.echo(f"✗ Unknown ingredient: {ingredient_id}", err=True)
        raise SystemExit(1) from None
    except (ValueError, RegistryError) as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None

    click.echo(f"✓ '{synonym}' now resolves to {ingredient_id}")


@registry.command("categorize")
@click.argument("ingredient_id")
@click.argument("category")
def registry_categorize(ingredient_id: str, category: str):
    """Assign a store category and mark the ingredient reviewed.

    CATEGORY is one of: produce, dairy, meat, pantry, spices, frozen, other.
    """
    try:
        chosen = Category.from_label(category)
    except ValueError as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None

    try:
        get_canonicalizer().set_category(ingredient_id, chosen)
        get_categorizer().assign(ingredient_id, chosen)
    except KeyError:
        click.echo(f"✗ Unknown ingredient: {ingredient_id}", err=True)
        raise SystemExit(1) from None
    except (RegistryError, CategoryStoreError) as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None

    click.echo(f"✓ {ingredient_id} → {chosen.value}")


# ============================================================================
# Pantry Commands
# ============================================================================


@cli.group()
def pantry():
    """Manage pantry staples (ingredients you always have at home).

    Staples are canonical ingredients, so "EVOO" and "olive oil" are the
    same staple. They are listed separately when building a shopping list.
    """
    pass


def _change_staples(change, names: tuple[str, ...]) -> list[str]:
    try:
        return change(list(names), PANTRY_FILE, get_canonicalizer())
    except (ValueError, RegistryError) as e:
        click.echo(f"✗ {e}", err=True)
        raise SystemExit(1) from None


@pantry.command("list")
def pantry_list():
    """List your pantry staples."""
    staples = load_pantry(PANTRY_FILE).staples

    click.echo()
    click.echo("YOUR PANTRY")
    click.echo("=" * 50)

    if staples:
        for ingredient_id in sorted(staples):
            click.echo(f"  {ingredient_id}")
    else:
        click.echo("  (empty)")

    click.echo()
    click.echo(f"Total: {len(staples)} staples")
    click.echo(f"File: {PANTRY_FILE}")
    click.echo()


@pantry.command("add")
@click.argument("names", nargs=-1, required=True)
def pantry_add(names: tuple[str, ...]):
    """Add staples to your pantry.

    Examples:

        recipe-shopper pantry add "soy sauce"

        recipe-shopper pantry add flour sugar
    """
    ids = _change_staples(add_staples, names)
    click.echo(f"✓ Added {len(ids)} staple(s): {', '.join(ids)}")


@pantry.command("remove")
@click.argument("names", nargs=-1, required=True)
def pantry_remove(names: tuple[str, ...]):
    """Remove staples from your pantry, defaults included."""
    ids = _change_staples(remove_staples, names)
    click.echo(f"✓ Removed {len(ids)} staple(s): {', '.join(ids)}")


@pantry.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
def pantry_clear(yes: bool):
    """Reset the pantry to the default staples."""
    if not yes:
        if not click.confirm("Reset pantry to defaults?"):
            click.echo("Cancelled.")
            return

    reset_pantry(PANTRY_FILE)
    click.echo("✓ Pantry reset to defaults")


@pantry.command("defaults")
def pantry_defaults():
    """Show the default staples."""
    click.echo()
    click.echo("DEFAULT STAPLES")
    click.echo("=" * 50)
    for ingredient_id in sorted(DEFAULT_STAPLES):
        click.echo(f"  • {ingredient_id}")
    click.echo()


# ============================================================================
# Entry Point
# ============================================================================


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
