"""Ingredient name normalization and the canonical ingredient registry."""

import json
import logging
import re
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Protocol

from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from . import config
from .categorizer import CATEGORY_TABLE, Category
from .recipe_parser import DESCRIPTOR_WORDS

logger = logging.getLogger(__name__)


class RegistryError(Exception):
    """Error reading or writing the ingredient registry."""

    pass


@dataclass(frozen=True)
class CanonicalIngredient:
    """A deduplicated ingredient identity that names and synonyms resolve to."""

    id: str
    display_name: str
    category: Category = Category.OTHER
    synonyms: frozenset[str] = frozenset()
    needs_review: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "category": self.category.value,
            "synonyms": sorted(self.synonyms),
            "needs_review": self.needs_review,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CanonicalIngredient":
        return cls(
            id=data["id"],
            display_name=data.get("display_name", data["id"]),
            category=Category(data.get("category", Category.OTHER.value)),
            synonyms=frozenset(data.get("synonyms", [])),
            needs_review=data.get("needs_review", False),
        )


# Canonical id -> synonyms. The display name is the id with spaces.
KNOWN_INGREDIENTS: dict[str, tuple[str, ...]] = {
    # Produce
    "onion": ("onion", "yellow onion", "white onion", "brown onion", "spanish onion"),
    "red-onion": ("red onion", "purple onion"),
    "shallot": ("shallot",),
    "scallion": ("scallion", "green onion", "spring onion"),
    "leek": ("leek",),
    "garlic": ("garlic", "garlic clove", "clove garlic", "clove of garlic"),
    "ginger": ("ginger", "ginger root", "gingerroot"),
    "carrot": ("carrot",),
    "celery": ("celery", "celery stalk", "celery rib"),
    "potato": ("potato", "russet potato", "yukon gold potato"),
    "sweet-potato": ("sweet potato", "yam"),
    "tomato": ("tomato", "roma tomato", "plum tomato", "vine tomato"),
    "cherry-tomato": ("cherry tomato", "grape tomato"),
    "bell-pepper": ("bell pepper", "red bell pepper", "green bell pepper", "sweet pepper"),
    "chili-pepper": ("chili pepper", "chili", "chile", "jalapeno", "jalapeño", "red chili"),
    "cucumber": ("cucumber",),
    "zucchini": ("zucchini", "courgette"),
    "eggplant": ("eggplant", "aubergine"),
    "broccoli": ("broccoli",),
    "cauliflower": ("cauliflower",),
    "spinach": ("spinach", "baby spinach"),
    "lettuce": ("lettuce", "romaine", "romaine lettuce", "iceberg lettuce"),
    "cabbage": ("cabbage",),
    "mushroom": ("mushroom", "button mushroom", "cremini mushroom"),
    "avocado": ("avocado",),
    "lemon": ("lemon",),
    "lime": ("lime",),
    "apple": ("apple",),
    "banana": ("banana",),
    "parsley": ("parsley", "flat leaf parsley", "italian parsley"),
    "cilantro": ("cilantro", "coriander leaves", "fresh coriander"),
    "basil": ("basil", "basil leaves"),
    "mint": ("mint", "mint leaves"),
    "thyme": ("thyme",),
    "rosemary": ("rosemary",),
    "dill": ("dill",),
    # Dairy & eggs
    "egg": ("egg", "eggs"),
    "milk": ("milk", "whole milk", "skim milk", "2% milk"),
    "butter": ("butter", "unsalted butter", "salted butter"),
    "heavy-cream": ("heavy cream", "whipping cream", "double cream", "heavy whipping cream"),
    "sour-cream": ("sour cream",),
    "yogurt": ("yogurt", "yoghurt", "greek yogurt", "plain yogurt"),
    "cheddar": ("cheddar", "cheddar cheese", "sharp cheddar"),
    "parmesan": ("parmesan", "parmesan cheese", "parmigiano reggiano", "parmigiano"),
    "mozzarella": ("mozzarella", "mozzarella cheese"),
    "feta": ("feta", "feta cheese"),
    "cream-cheese": ("cream cheese",),
    # Meat & seafood
    "chicken-breast": ("chicken breast", "chicken breasts", "boneless chicken breast"),
    "chicken-thigh": ("chicken thigh", "chicken thighs"),
    "ground-beef": ("ground beef", "minced beef", "beef mince"),
    "ground-pork": ("ground pork", "minced pork", "pork mince"),
    "bacon": ("bacon", "bacon strip"),
    "sausage": ("sausage",),
    "salmon": ("salmon", "salmon fillet"),
    "shrimp": ("shrimp", "prawn"),
    "cod": ("cod", "cod fillet"),
    "tuna": ("tuna", "canned tuna"),
    # Pantry
    "flour": ("flour", "all-purpose flour", "all purpose flour", "plain flour", "ap flour"),
    "sugar": ("sugar", "granulated sugar", "white sugar", "caster sugar"),
    "brown-sugar": ("brown sugar", "light brown sugar", "dark brown sugar"),
    "baking-powder": ("baking powder",),
    "baking-soda": ("baking soda", "bicarbonate of soda", "bicarb"),
    "olive-oil": ("olive oil", "extra virgin olive oil", "extra-virgin olive oil", "evoo"),
    "vegetable-oil": ("vegetable oil", "canola oil", "sunflower oil", "neutral oil"),
    "vinegar": ("vinegar", "white vinegar"),
    "soy-sauce": ("soy sauce", "soya sauce", "tamari"),
    "honey": ("honey",),
    "rice": ("rice", "white rice", "long grain rice", "basmati rice", "jasmine rice"),
    "pasta": ("pasta", "spaghetti", "penne"),
    "oats": ("oats", "rolled oats", "oatmeal"),
    "bread": ("bread",),
    "chicken-stock": ("chicken stock", "chicken broth"),
    "vegetable-stock": ("vegetable stock", "vegetable broth"),
    "canned-tomato": ("canned tomatoes", "crushed tomatoes", "diced tomatoes", "tinned tomatoes"),
    "tomato-paste": ("tomato paste", "tomato puree"),
    "chickpea": ("chickpea", "garbanzo bean"),
    "black-bean": ("black bean",),
    "lentil": ("lentil", "red lentil", "green lentil"),
    "water": ("water",),
    # Spices
    "salt": ("salt", "kosher salt", "sea salt", "table salt"),
    "black-pepper": ("black pepper", "pepper", "ground black pepper", "peppercorn"),
    "cumin": ("cumin", "ground cumin", "cumin seed"),
    "paprika": ("paprika", "smoked paprika", "sweet paprika"),
    "cinnamon": ("cinnamon", "ground cinnamon", "cinnamon stick"),
    "oregano": ("oregano", "dried oregano"),
    "chili-flakes": ("chili flakes", "red pepper flakes", "crushed red pepper"),
    "turmeric": ("turmeric", "ground turmeric"),
    "nutmeg": ("nutmeg", "ground nutmeg"),
    "bay-leaf": ("bay leaf", "bay leaves"),
    "ground-clove": ("ground cloves", "whole cloves", "clove powder"),
    "vanilla-extract": ("vanilla extract", "vanilla", "pure vanilla extract"),
    # Frozen
    "frozen-pea": ("frozen peas", "peas"),
    "frozen-spinach": ("frozen spinach",),
    "ice-cream": ("ice cream", "vanilla ice cream"),
}

# Irregular plural -> singular
IRREGULAR_PLURALS: dict[str, str] = {
    "leaves": "leaf",
    "loaves": "loaf",
    "halves": "half",
    "knives": "knife",
    "cookies": "cookie",
    "geese": "goose",
    "teeth": "tooth",
}

# Words ending in "s" that are not plurals
UNCOUNTABLE: frozenset[str] = frozenset(
    {
        "asparagus",
        "couscous",
        "grits",
        "hummus",
        "molasses",
        "oats",
        "swiss",
        "brussels",
        "citrus",
        "hibiscus",
        "lemongrass",
        "series",
        "species",
    }
)

_SIBILANT_ES = ("ches", "shes", "xes", "sses", "zzes", "oes")

# Fuzzy matching bounds by normalized name length
FUZZY_MIN_LENGTH = 5
FUZZY_ONE_EDIT_MAX_LENGTH = 7


def singularize(word: str) -> str:
    """
    Reduce an English plural to its singular form.

    Examples:
        tomatoes -> tomato
        berries -> berry
        leaves -> leaf
        asparagus -> asparagus
    """
    lower = word.lower()

    if lower in IRREGULAR_PLURALS:
        return IRREGULAR_PLURALS[lower]
    if lower in UNCOUNTABLE or len(lower) <= 3:
        return lower
    if lower.endswith(("ss", "us", "is")):
        return lower
    if lower.endswith("ies") and len(lower) > 4:
        return lower[:-3] + "y"
    if lower.endswith(_SIBILANT_ES):
        return lower[:-2]
    if lower.endswith("s"):
        return lower[:-1]
    return lower


def normalize_ingredient_name(text: str) -> str:
    """
    Normalize an ingredient name for matching.

    Lowercases, drops parenthesized notes and punctuation, removes
    descriptor words and singularizes the final word.

    Examples:
        "Diced Yellow Onions" -> "yellow onion"
        "Tomatoes (canned)" -> "tomato"
    """
    text = text.lower()
    text = re.sub(r"\([^)]*\)", " ", text)
    text = re.sub(r"[^\w\s%]", " ", text)
    words = text.split()

    kept = [w for w in words if w not in DESCRIPTOR_WORDS]
    if not kept:
        # A name made only of descriptors ("fresh") is still a name
        kept = words
    if not kept:
        return ""

    kept[-1] = singularize(kept[-1])
    return " ".join(kept)


def slugify(name: str) -> str:
    """Turn a normalized name into a canonical id ("olive oil" -> "olive-oil")."""
    return re.sub(r"[^\w%]+", "-", name).strip("-")


def max_edits_for(name: str, cap: int | None = None) -> int:
    """Edit budget for fuzzy matching a name of this length."""
    cap = config.FUZZY_MAX_EDITS if cap is None else cap
    if len(name) < FUZZY_MIN_LENGTH:
        allowed = 0
    elif len(name) <= FUZZY_ONE_EDIT_MAX_LENGTH:
        allowed = 1
    else:
        allowed = 2
    return max(0, min(allowed, cap))


def words_within_budget(name: str, candidate: str, cap: int | None = None) -> bool:
    """
    Check a fuzzy candidate word by word.

    Both names need the same number of words and each word must stay within
    its own edit budget, so "white wine" never reaches "white rice" and
    "hot sauce" never reaches "soy sauce".
    """
    words, other = name.split(), candidate.split()
    if len(words) != len(other):
        return False
    return all(
        Levenshtein.distance(word, match) <= max_edits_for(word, cap)
        for word, match in zip(words, other)
    )


def curated_ingredients() -> list[CanonicalIngredient]:
    """Build registry entries from the curated ingredient table."""
    return [
        CanonicalIngredient(
            id=ingredient_id,
            display_name=ingredient_id.replace("-", " "),
            category=CATEGORY_TABLE.get(ingredient_id, Category.OTHER),
            synonyms=frozenset(synonyms),
        )
        for ingredient_id, synonyms in KNOWN_INGREDIENTS.items()
    ]


# ============================================================================
# Registry stores
# ============================================================================


class RegistryStore(Protocol):
    """Key-value persistence for canonical ingredients."""

    def get(self, ingredient_id: str) -> CanonicalIngredient | None: ...

    def insert_if_absent(self, ingredient: CanonicalIngredient) -> CanonicalIngredient:
        """Store the entry unless its id exists; return whichever entry is stored."""
        ...

    def put(self, ingredient: CanonicalIngredient) -> None: ...

    def values(self) -> list[CanonicalIngredient]: ...


class InMemoryRegistryStore:
    """Registry store backed by a dict, for tests and one-off runs."""

    def __init__(self, entries: Iterable[CanonicalIngredient] = ()):
        self._entries: dict[str, CanonicalIngredient] = {e.id: e for e in entries}

    def get(self, ingredient_id: str) -> CanonicalIngredient | None:
        return self._entries.get(ingredient_id)

    def insert_if_absent(self, ingredient: CanonicalIngredient) -> CanonicalIngredient:
        # dict.setdefault is atomic for str keys
        return self._entries.setdefault(ingredient.id, ingredient)

    def put(self, ingredient: CanonicalIngredient) -> None:
        self._entries[ingredient.id] = ingredient

    def values(self) -> list[CanonicalIngredient]:
        return list(self._entries.values())


class JsonRegistryStore:
    """Registry store persisted as a JSON file across sessions."""

    def __init__(self, path: Path):
        self.path = path
        self._entries: dict[str, CanonicalIngredient] | None = None
        self._lock = threading.Lock()

    def _load(self) -> dict[str, CanonicalIngredient]:
        # Callers hold self._lock
        if self._entries is not None:
            return self._entries

        entries: dict[str, CanonicalIngredient] = {}
        if self.path.exists():
            try:
                with open(self.path, encoding="utf-8") as f:
                    data = json.load(f)
                for item in data.get("ingredients", []):
                    ingredient = CanonicalIngredient.from_dict(item)
                    entries[ingredient.id] = ingredient
            except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
                raise RegistryError(f"Failed to load ingredient registry: {e}") from e

        self._entries = entries
        return entries

    def _save(self) -> None:
        entries = self._load()
        data = {
            "version": 1,
            "ingredients": [entries[key].to_dict() for key in sorted(entries)],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            raise RegistryError(f"Failed to save ingredient registry: {e}") from e

    def get(self, ingredient_id: str) -> CanonicalIngredient | None:
        with self._lock:
            return self._load().get(ingredient_id)

    def insert_if_absent(self, ingredient: CanonicalIngredient) -> CanonicalIngredient:
        with self._lock:
            entries = self._load()
            existing = entries.get(ingredient.id)
            if existing is not None:
                return existing
            entries[ingredient.id] = ingredient
            self._save()
            return ingredient

    def put(self, ingredient: CanonicalIngredient) -> None:
        with self._lock:
            self._load()[ingredient.id] = ingredient
            self._save()

    def values(self) -> list[CanonicalIngredient]:
        with self._lock:
            return list(self._load().values())


class _KeyedLocks:
    """
    One lock per key, so work on different keys never contends.

    A key's lock lives only while some caller holds or waits for it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def __call__(self, key: str) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(key, (threading.Lock(), 0))
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                lock, users = self._locks[key]
                if users == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)


# ============================================================================
# Canonicalizer
# ============================================================================


class IngredientCanonicalizer:
    """
    Resolves free-text ingredient names to canonical registry entries.

    Matching order: exact synonym, normalized synonym, bounded fuzzy match,
    then a new entry flagged for review. Learned entries in the store take
    precedence over the curated table.
    """

    def __init__(
        self,
        store: RegistryStore | None = None,
        max_edits: int | None = None,
        curated: Iterable[CanonicalIngredient] | None = None,
    ):
        self.store = store if store is not None else InMemoryRegistryStore()
        self.max_edits = config.FUZZY_MAX_EDITS if max_edits is None else max_edits
        self._curated: dict[str, CanonicalIngredient] = {
            e.id: e for e in (curated_ingredients() if curated is None else curated)
        }
        self._index: dict[str, str] = {}
        self._index_lock = threading.Lock()
        self._creation_locks = _KeyedLocks()

        for entry in self._curated.values():
            self._index_entry(entry)
        for entry in self.store.values():
            self._index_entry(entry, overwrite=True)

    def _index_entry(self, entry: CanonicalIngredient, overwrite: bool = False) -> None:
        keys = {entry.id, entry.display_name.lower(), *(s.lower() for s in entry.synonyms)}
        keys |= {normalize_ingredient_name(key) for key in list(keys)}
        with self._index_lock:
            for key in keys:
                if not key:
                    continue
                if overwrite:
                    self._index[key] = entry.id
                else:
                    self._index.setdefault(key, entry.id)

    def get(self, ingredient_id: str) -> CanonicalIngredient | None:
        """Look up an entry by id, preferring learned entries over curated ones."""
        return self.store.get(ingredient_id) or self._curated.get(ingredient_id)

    def entries(self) -> list[CanonicalIngredient]:
        """All known entries, sorted by id."""
        merged = dict(self._curated)
        merged.update({e.id: e for e in self.store.values()})
        return [merged[key] for key in sorted(merged)]

    def _lookup(self, key: str) -> CanonicalIngredient | None:
        ingredient_id = self._index.get(key)
        return self.get(ingredient_id) if ingredient_id is not None else None

    def _fuzzy_lookup(self, normalized: str) -> CanonicalIngredient | None:
        allowed = max_edits_for(normalized, self.max_edits)
        if allowed == 0:
            return None

        with self._index_lock:
            choices = sorted(self._index)
        # Closest first; ties keep the sorted choice order
        matches = process.extract(
            normalized, choices, scorer=Levenshtein.distance, score_cutoff=allowed, limit=None
        )
        for key, distance, _ in matches:
            if words_within_budget(normalized, key, self.max_edits):
                logger.debug("Fuzzy matched %r to %r (%d edits)", normalized, key, distance)
                return self._lookup(key)
        return None

    def resolve(self, text: str) -> tuple[CanonicalIngredient, bool]:
        """
        Resolve an ingredient name, reporting whether a fuzzy match was used.

        Returns:
            Tuple of (entry, fuzzy). A fuzzy match is a guess and callers
            should surface it for review.

        Raises:
            ValueError: If the text holds no name at all
        """
        raw_key = " ".join(text.lower().split())
        if not raw_key:
            raise ValueError("Cannot canonicalize an empty ingredient name")

        found = self._lookup(raw_key)
        if found is not None:
            return found, False

        normalized = normalize_ingredient_name(text)
        if not normalized:
            raise ValueError(f"No ingredient name in {text!r}")

        found = self._lookup(normalized)
        if found is not None:
            return found, False

        found = self._fuzzy_lookup(normalized)
        if found is not None:
            return found, True

        return self._create(normalized, raw_key), False

    def canonicalize(self, text: str) -> CanonicalIngredient:
        """
        Resolve an ingredient name to its canonical entry.

        Unknown names never fail: they become new entries in category OTHER
        flagged for review. At most one entry is created per normalized name,
        even under concurrent calls.

        Args:
            text: Ingredient name as written (e.g., "Yellow Onions")

        Returns:
            The canonical ingredient

        Raises:
            ValueError: If the text holds no name at all
        """
        return self.resolve(text)[0]

    def _create(self, normalized: str, raw_key: str) -> CanonicalIngredient:
        with self._creation_locks(normalized):
            # Another caller may have created it while we waited
            found = self._lookup(normalized)
            if found is not None:
                return found

            candidate = CanonicalIngredient(
                id=slugify(normalized),
                display_name=normalized,
                category=Category.OTHER,
                synonyms=frozenset({raw_key, normalized}),
                needs_review=True,
            )
            entry = self.store.insert_if_absent(candidate)
            self._index_entry(replace(entry, synonyms=entry.synonyms | candidate.synonyms))

        if entry is candidate:
            logger.info("New ingredient %r needs review", entry.id)
        return entry

    def add_synonym(self, ingredient_id: str, synonym: str) -> CanonicalIngredient:
        """
        Map another spelling onto an existing ingredient.

        Raises:
            KeyError: If the ingredient id is unknown
            ValueError: If the synonym is empty
        """
        synonym = " ".join(synonym.lower().split())
        if not synonym:
            raise ValueError("Synonym cannot be empty")
        entry = self.get(ingredient_id)
        if entry is None:
            raise KeyError(ingredient_id)

        updated = replace(entry, synonyms=entry.synonyms | {synonym})
        self.store.put(updated)
        self._index_entry(updated, overwrite=True)
        return updated

    def set_category(self, ingredient_id: str, category: Category) -> CanonicalIngredient:
        """
        Assign a category to an entry and clear its review flag.

        Raises:
            KeyError: If the ingredient id is unknown
        """
        entry = self.get(ingredient_id)
        if entry is None:
            raise KeyError(ingredient_id)

        updated = replace(entry, category=category, needs_review=False)
        self.store.put(updated)
        return updated

    def needs_review(self) -> list[CanonicalIngredient]:
        return [entry for entry in self.entries() if entry.needs_review]


_default_canonicalizer: IngredientCanonicalizer | None = None
_default_lock = threading.Lock()


def get_canonicalizer() -> IngredientCanonicalizer:
    """Get the process-wide in-memory canonicalizer."""
    global _default_canonicalizer
    with _default_lock:
        if _default_canonicalizer is None:
            _default_canonicalizer = IngredientCanonicalizer()
        return _default_canonicalizer


def canonicalize(text: str) -> CanonicalIngredient:
    """Resolve an ingredient name with the default canonicalizer."""
    return get_canonicalizer().canonicalize(text)
