"""
Storage Gateway

Thin select/insert/update/upsert/delete layer over the SQLAlchemy session.
Rows come back as model instances; database failures come back as
StorageError subclasses with a machine-readable code.
"""

import functools
import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import NotFound, StorageError, TransientStorageError, UniqueViolation

logger = logging.getLogger(__name__)


def _is_unique_violation(exc):
    text = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    return 'unique' in text or 'duplicate' in text


def _translate_errors(method):
    """Roll back and re-raise database errors as StorageError subclasses."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except IntegrityError as exc:
            self.session.rollback()
            if _is_unique_violation(exc):
                raise UniqueViolation() from exc
            logger.error("Integrity error in %s: %s", method.__name__, exc)
            raise StorageError() from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Storage error in %s: %s", method.__name__, exc)
            raise TransientStorageError() from exc
    return wrapper


class Storage:
    """
    Generic query/mutation interface used by the planning services.

    Filters are keyword arguments: a scalar value is an equality filter,
    a list/tuple/set value is an IN filter. Every write commits on its own
    unless it runs inside ``atomic()``.
    """

    def __init__(self, session):
        self.session = session
        self._depth = 0

    def _select(self, model, filters, order_by=None, descending=False):
        query = self.session.query(model)
        for column, value in filters.items():
            attr = getattr(model, column)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(attr.in_(list(value)))
            else:
                query = query.filter(attr == value)
        if order_by is not None:
            order_cols = order_by if isinstance(order_by, (list, tuple)) else [order_by]
            for col in order_cols:
                attr = getattr(model, col)
                query = query.order_by(attr.desc() if descending else attr.asc())
        return query

    def _commit(self):
        if self._depth == 0:
            self.session.commit()
        else:
            self.session.flush()

    @_translate_errors
    def query(self, model, order_by=None, descending=False, limit=None, **filters):
        """Return all rows matching ``filters``."""
        if any(isinstance(v, (list, tuple, set, frozenset)) and not v for v in filters.values()):
            return []
        query = self._select(model, filters, order_by, descending)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    @_translate_errors
    def first(self, model, order_by=None, descending=False, **filters):
        """Return the first matching row or None."""
        return self._select(model, filters, order_by, descending).first()

    def get(self, model, message=None, **filters):
        """Return the single matching row, raising NotFound if there is none."""
        row = self.first(model, **filters)
        if row is None:
            raise NotFound(message)
        return row

    @_translate_errors
    def insert(self, model, **values):
        row = model(**values)
        self.session.add(row)
        self._commit()
        return row

    @_translate_errors
    def insert_many(self, model, rows):
        created = [model(**values) for values in rows]
        self.session.add_all(created)
        self._commit()
        return created

    @_translate_errors
    def update(self, model, filters, patch):
        """Apply ``patch`` to every row matching ``filters`` and return the rows."""
        rows = self._select(model, filters).all()
        for row in rows:
            for column, value in patch.items():
                setattr(row, column, value)
        self._commit()
        return rows

    @_translate_errors
    def upsert(self, model, values, conflict_keys):
        """Insert ``values`` or update the row sharing its ``conflict_keys``."""
        key_filters = {key: values[key] for key in conflict_keys}
        row = self._select(model, key_filters).first()
        if row is None:
            row = model(**values)
            self.session.add(row)
        else:
            for column, value in values.items():
                if column not in conflict_keys:
                    setattr(row, column, value)
        self._commit()
        return row

    @_translate_errors
    def delete(self, model, **filters):
        """Delete matching rows through the ORM so relationship cascades run."""
        rows = self._select(model, filters).all()
        for row in rows:
            self.session.delete(row)
        self._commit()
        return len(rows)

    @contextmanager
    def atomic(self):
        """Group the writes made inside the block into one transaction."""
        self._depth += 1
        try:
            yield self
        except Exception:
            self._depth -= 1
            if self._depth == 0:
                self.session.rollback()
            raise
        self._depth -= 1
        if self._depth == 0:
            self._finish()

    @_translate_errors
    def _finish(self):
        self.session.commit()
