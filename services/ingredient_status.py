"""
Ingredient Status Store

Per-plan "have it" checklist behind the shopping list, keyed by
normalized ingredient text.
"""

import logging

from models import IngredientStatus
from models.base import utcnow
from .errors import StorageError, ValidationError
from .matching import normalize_ingredient
from .optimistic import Optimistic

logger = logging.getLogger(__name__)

_MISSING = object()


class IngredientStatusStore:
    """
    Holds ``status_map`` (ingredient key -> bool) for one plan.

    ``load`` fails softly into ``error``. ``set_status`` updates the map
    before writing and restores the previous entry if the write fails.
    ``reset`` deletes every row for the plan without asking.
    """

    def __init__(self, storage, plan_id):
        self.storage = storage
        self.plan_id = plan_id
        self.status_map = {}
        self.error = None
        self.is_loading = False

    def load(self):
        self.is_loading = True
        self.error = None
        try:
            rows = self.storage.query(IngredientStatus, plan_id=self.plan_id)
            self.status_map = {row.ingredient: bool(row.has_item) for row in rows if row.ingredient}
        except StorageError as exc:
            logger.exception("Error loading ingredient status for plan %s", self.plan_id)
            self.status_map = {}
            self.error = exc.message
        finally:
            self.is_loading = False
        return self.status_map

    def is_checked(self, ingredient):
        return self.status_map.get(normalize_ingredient(ingredient), False)

    def _read(self, key):
        return lambda: self.status_map.get(key, _MISSING)

    def _write(self, key):
        def write(value):
            if value is _MISSING:
                self.status_map.pop(key, None)
            else:
                self.status_map[key] = value
        return write

    def set_status(self, ingredient, has_item):
        key = normalize_ingredient(ingredient)
        if not key:
            raise ValidationError('Ingredient is required')

        has_item = bool(has_item)
        self.error = None
        try:
            with Optimistic(self._read(key), self._write(key), lambda _prev: has_item):
                self.storage.upsert(
                    IngredientStatus,
                    {
                        'plan_id': self.plan_id,
                        'ingredient': key,
                        'has_item': has_item,
                        'updated_at': utcnow(),
                    },
                    conflict_keys=('plan_id', 'ingredient'),
                )
        except StorageError as exc:
            logger.exception("Error updating ingredient status for plan %s", self.plan_id)
            self.error = exc.message
            raise
        return has_item

    def reset(self):
        self.error = None
        try:
            self.storage.delete(IngredientStatus, plan_id=self.plan_id)
        except StorageError as exc:
            logger.exception("Error resetting ingredient status for plan %s", self.plan_id)
            self.error = exc.message
            raise
        self.status_map = {}
