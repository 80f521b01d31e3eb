"""
Shared fixtures: an app on an in-memory database, a Storage bound to its
session, and small factories for users, meals and plans.
"""

import pytest
from werkzeug.security import generate_password_hash

from app import create_app
from models import db, Meal, MealPlan, MealPlanDay, User
from services import MealPlanStore, Storage
from services.auth import CurrentUser


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    return Storage(db.session)


class Factory:
    def __init__(self, storage):
        self.storage = storage

    def user(self, email, password='secret123'):
        row = self.storage.insert(User, email=email, password_hash=generate_password_hash(password))
        return CurrentUser(row.id, row.email)

    def meal(self, user, name, ingredients=None, is_private=False, cuisine_type=None):
        return self.storage.insert(
            Meal,
            user_id=user.id,
            name=name,
            ingredients=ingredients,
            is_private=is_private,
            cuisine_type=cuisine_type,
        )

    def plan(self, user, name='Week', days=('Monday',), is_public=False, share_token=None):
        plan = self.storage.insert(
            MealPlan, user_id=user.id, name=name, is_public=is_public, share_token=share_token,
        )
        for idx, day_name in enumerate(days):
            self.storage.insert(
                MealPlanDay,
                plan_id=plan.id,
                user_id=user.id,
                day_name=day_name,
                order_index=idx,
                is_active=True,
            )
        return plan

    def day_ids(self, plan):
        rows = self.storage.query(MealPlanDay, order_by=['order_index', 'id'], plan_id=plan.id)
        return [row.id for row in rows]


@pytest.fixture
def factory(storage):
    return Factory(storage)


@pytest.fixture
def open_store(storage):
    """Build and load MealPlanStores that are closed when the test ends."""
    stores = []

    def build(user=None, plan_id=None, load=True, scope='browser-a'):
        store = MealPlanStore(storage, requested_plan_id=plan_id, get_user=lambda: user, scope=scope)
        stores.append(store)
        if load:
            store.load()
        return store

    yield build
    for store in stores:
        store.close()
