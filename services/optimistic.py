"""
Optimistic Updates

Apply a local change before storage confirms it, keeping an exact undo.
"""


class Optimistic:
    """
    Snapshot a value, write ``transform(snapshot)`` immediately and keep the
    snapshot so ``rollback()`` can restore it exactly.

    Used as a context manager, an exception leaving the block rolls back
    and propagates::

        with Optimistic(read, write, lambda meals: meals[1:]):
            storage.delete(DayMeal, id=day_meal_id)
    """

    def __init__(self, read, write, transform):
        self._write = write
        self.previous = read()
        self.current = transform(self.previous)
        self.settled = False
        self._write(self.current)

    def commit(self):
        self.settled = True

    def rollback(self):
        if self.settled:
            return
        self._write(self.previous)
        self.settled = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()
        return False
