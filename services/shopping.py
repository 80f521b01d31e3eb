"""
Shopping List Service

Builds the deduplicated shopping list for a plan from its active days.
"""

from dataclasses import dataclass, field

from .matching import normalize_ingredient, split_ingredients


@dataclass
class ShoppingEntry:
    """One shopping-list line and the day/meal pairs that need it."""
    key: str
    label: str
    sources: list = field(default_factory=list)
    checked: bool = False

    def to_dict(self):
        return {
            'key': self.key,
            'label': self.label,
            'sources': list(self.sources),
            'checked': self.checked,
        }


def source_label(day_name, meal_name):
    return f"{day_name} — {meal_name}"


def generate_shopping_list(days, status_map=None):
    """
    Aggregate ingredient lines across the active days of a plan.

    Lines are keyed by ``normalize_ingredient``; the first raw text seen
    for a key becomes its label. Entries are sorted by label, case
    insensitively. ``status_map`` (key -> has item) fills in ``checked``.
    The result depends only on the arguments.
    """
    status_map = status_map or {}
    consolidated = {}

    for day in days:
        if not day.is_active:
            continue
        for meal in day.meals:
            for line in split_ingredients(meal.ingredients):
                key = normalize_ingredient(line)
                if not key:
                    continue
                entry = consolidated.get(key)
                if entry is None:
                    entry = consolidated[key] = ShoppingEntry(key=key, label=line)
                entry.sources.append(source_label(day.day_name, meal.name))

    entries = list(consolidated.values())
    for entry in entries:
        entry.checked = bool(status_map.get(entry.key, False))

    entries.sort(key=lambda e: (e.label.casefold(), e.label))
    return entries
