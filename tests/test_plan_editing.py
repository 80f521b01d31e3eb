"""Tests for day and day-meal editing through a loaded MealPlanStore."""

import pytest

from models import DayMeal, MealPlanDay, PlanShare
from services import AuthorizationError, NotFound, TransientStorageError, ValidationError
from services import plan_editing


def day_meals(storage, day_id):
    rows = storage.query(DayMeal, order_by=['order_index', 'id'], day_id=day_id)
    return [(row.meal_id, row.order_index) for row in rows]


@pytest.fixture
def alice(factory):
    return factory.user('alice@example.com')


@pytest.fixture
def plan(factory, alice):
    return factory.plan(alice, name='Week', days=('Monday',))


@pytest.fixture
def monday(factory, plan):
    return factory.day_ids(plan)[0]


def test_add_and_remove_keeps_sparse_indices(storage, factory, open_store, alice, monday):
    m1 = factory.meal(alice, 'M1')
    m2 = factory.meal(alice, 'M2')
    store = open_store(alice)

    plan_editing.add_meal_to_day(store, monday, m1.id)
    plan_editing.add_meal_to_day(store, monday, m2.id)

    meals = store.find_day(monday).meals
    assert [(m.id, m.order_index) for m in meals] == [(m1.id, 0), (m2.id, 1)]

    plan_editing.remove_meal_from_day(store, meals[0].day_meal_id)

    assert [(m.id, m.order_index) for m in store.find_day(monday).meals] == [(m2.id, 1)]
    assert day_meals(storage, monday) == [(m2.id, 1)]


def test_duplicate_add_rejected(storage, factory, open_store, alice, monday):
    m2 = factory.meal(alice, 'M2')
    store = open_store(alice)
    plan_editing.add_meal_to_day(store, monday, m2.id)

    with pytest.raises(ValidationError) as excinfo:
        plan_editing.add_meal_to_day(store, monday, m2.id)

    assert 'already in this day' in excinfo.value.message
    assert [m.id for m in store.find_day(monday).meals] == [m2.id]
    assert day_meals(storage, monday) == [(m2.id, 0)]


def test_duplicate_add_rejected_by_storage_when_view_is_stale(storage, factory, open_store, alice, monday):
    meal = factory.meal(alice, 'Stew')
    store = open_store(alice)
    # another editor added it after this store loaded
    storage.insert(DayMeal, day_id=monday, meal_id=meal.id, order_index=0)

    with pytest.raises(ValidationError) as excinfo:
        plan_editing.add_meal_to_day(store, monday, meal.id)

    assert excinfo.value.message == plan_editing.DUPLICATE_MEAL_MESSAGE
    assert day_meals(storage, monday) == [(meal.id, 0)]


def test_cannot_add_someone_elses_private_meal(factory, open_store, alice, monday):
    bob = factory.user('bob@example.com')
    secret = factory.meal(bob, 'Secret', is_private=True)
    store = open_store(alice)

    with pytest.raises(NotFound):
        plan_editing.add_meal_to_day(store, monday, secret.id)


def test_drop_meal_on_day(storage, factory, open_store, alice, monday):
    meal = factory.meal(alice, 'Pie')
    store = open_store(alice)

    day_meal_id = plan_editing.drop_meal_on_day(store, monday, meal.id)

    assert store.find_day(monday).meals[0].day_meal_id == day_meal_id
    assert day_meals(storage, monday) == [(meal.id, 0)]


def test_drop_meal_rolls_back_on_failure(storage, factory, open_store, alice, monday, monkeypatch):
    existing = factory.meal(alice, 'Bread')
    storage.insert(DayMeal, day_id=monday, meal_id=existing.id, order_index=0)
    meal = factory.meal(alice, 'Pie')
    store = open_store(alice)
    before = store.find_day(monday).meals

    def fail(*args, **kwargs):
        raise TransientStorageError()

    monkeypatch.setattr(storage, 'insert', fail)

    with pytest.raises(TransientStorageError):
        plan_editing.drop_meal_on_day(store, monday, meal.id)

    assert store.find_day(monday).meals == before


def test_reorder_round_trip(storage, factory, open_store, alice, monday):
    ids = []
    for idx, name in enumerate(['A', 'B', 'C']):
        meal = factory.meal(alice, name)
        ids.append(meal.id)
        storage.insert(DayMeal, day_id=monday, meal_id=meal.id, order_index=idx)
    store = open_store(alice)

    plan_editing.reorder_day_meals(store, monday, 0, 2)

    assert [m.name for m in store.find_day(monday).meals] == ['B', 'C', 'A']
    assert day_meals(storage, monday) == [(ids[1], 0), (ids[2], 1), (ids[0], 2)]

    plan_editing.reorder_day_meals(store, monday, 2, 0)

    assert [m.name for m in store.find_day(monday).meals] == ['A', 'B', 'C']
    assert day_meals(storage, monday) == [(ids[0], 0), (ids[1], 1), (ids[2], 2)]


def test_reorder_failure_restores_previous_order(storage, factory, open_store, alice, monday, monkeypatch):
    ids = []
    for idx, name in enumerate(['A', 'B', 'C']):
        meal = factory.meal(alice, name)
        ids.append(meal.id)
        storage.insert(DayMeal, day_id=monday, meal_id=meal.id, order_index=idx)
    store = open_store(alice)
    before = store.find_day(monday).meals

    real_update = storage.update
    calls = []

    def flaky_update(model, filters, patch):
        calls.append(filters)
        if len(calls) == 2:
            raise TransientStorageError()
        return real_update(model, filters, patch)

    monkeypatch.setattr(storage, 'update', flaky_update)

    with pytest.raises(TransientStorageError):
        plan_editing.reorder_day_meals(store, monday, 0, 2)

    assert store.find_day(monday).meals == before
    # the first row write was part of the same transaction and went back too
    assert day_meals(storage, monday) == [(ids[0], 0), (ids[1], 1), (ids[2], 2)]


def test_reorder_validates_positions(factory, open_store, alice, monday):
    meal = factory.meal(alice, 'Only')
    store = open_store(alice)
    plan_editing.add_meal_to_day(store, monday, meal.id)

    with pytest.raises(ValidationError):
        plan_editing.reorder_day_meals(store, monday, 0, 3)
    assert plan_editing.reorder_day_meals(store, monday, 0, 0) is store


def test_day_management(storage, factory, open_store, alice, plan, monday):
    store = open_store(alice)

    tuesday = plan_editing.add_day(store, '  Tuesday ')
    assert [d.day_name for d in store.days] == ['Monday', 'Tuesday']
    assert store.find_day(tuesday).order_index == 1

    plan_editing.rename_day(store, tuesday, 'Taco Tuesday')
    assert store.find_day(tuesday).day_name == 'Taco Tuesday'

    with pytest.raises(ValidationError):
        plan_editing.rename_day(store, tuesday, '   ')

    plan_editing.set_day_active(store, monday, False)
    assert [d.day_name for d in store.active_days] == ['Taco Tuesday']
    assert [d.day_name for d in store.inactive_days] == ['Monday']

    plan_editing.delete_day(store, tuesday)
    assert [d.id for d in store.days] == [monday]
    assert storage.query(MealPlanDay, id=tuesday) == []


def test_new_day_goes_after_hidden_days(storage, factory, open_store, alice, plan, monday):
    storage.update(MealPlanDay, {'id': monday}, {'is_active': False, 'order_index': 7})
    store = open_store(alice)

    day_id = plan_editing.add_day(store, 'Extra')

    assert store.find_day(day_id).order_index == 8


def test_delete_day_removes_its_meals(storage, factory, open_store, alice, monday):
    meal = factory.meal(alice, 'Chili')
    store = open_store(alice)
    plan_editing.add_meal_to_day(store, monday, meal.id)

    plan_editing.delete_day(store, monday)

    assert storage.query(DayMeal, day_id=monday) == []


def test_update_plan_details(factory, open_store, alice, plan):
    store = open_store(alice)

    plan_editing.update_plan_details(store, 'Summer', '  Light meals ')
    assert (store.plan_name, store.plan_subtitle) == ('Summer', 'Light meals')

    plan_editing.update_plan_details(store, '   ', '')
    assert (store.plan_name, store.plan_subtitle) == ('Menu', None)


def test_readers_cannot_edit(storage, factory, open_store, alice, plan, monday):
    bob = factory.user('bob@example.com')
    meal = factory.meal(bob, 'Pasta')
    storage.insert(PlanShare, plan_id=plan.id, shared_with_email=bob.email, permission='view')
    store = open_store(bob, plan_id=plan.id)

    with pytest.raises(AuthorizationError):
        plan_editing.add_meal_to_day(store, monday, meal.id)
    with pytest.raises(AuthorizationError):
        plan_editing.add_day(store, 'Tuesday')


def test_edit_share_can_edit(storage, factory, open_store, alice, plan, monday):
    bob = factory.user('bob@example.com')
    meal = factory.meal(bob, 'Pasta')
    storage.insert(PlanShare, plan_id=plan.id, shared_with_email=bob.email, permission='edit')
    store = open_store(bob, plan_id=plan.id)

    plan_editing.add_meal_to_day(store, monday, meal.id)

    assert day_meals(storage, monday) == [(meal.id, 0)]


def test_editing_without_a_loaded_plan(factory, open_store):
    store = open_store(factory.user('nobody@example.com'))
    with pytest.raises(NotFound):
        plan_editing.add_day(store, 'Monday')
