"""Advisory problem categories offered to callers."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List


@dataclass(frozen=True)
class Category:
    id: str
    title: str
    description: str


CATEGORIES: List[Category] = [
    Category(id="algebra", title="Algèbre", description="Équations, polynômes, systèmes"),
    Category(id="geometry", title="Géométrie", description="Figures, aires, volumes"),
    Category(id="calculus", title="Analyse", description="Dérivées, intégrales, limites"),
    Category(id="statistics", title="Statistiques", description="Probabilités, moyennes"),
]

_BY_ID: Dict[str, Category] = {category.id: category for category in CATEGORIES}


def category_title(category_id: str) -> str:
    """Returns the display title for a category id.

    Unknown ids are returned unchanged since categories are free-form context.
    """
    key = (category_id or "").strip().lower()
    known = _BY_ID.get(key)
    return known.title if known else (category_id or "").strip()


def list_categories() -> List[Dict[str, str]]:
    return [asdict(category) for category in CATEGORIES]
