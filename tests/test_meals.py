"""Tests for the meal library and admin moderation."""

import pytest

from models import DayMeal, IngredientStatus, Meal, MealPlan, PlanShare, User, UserPreferences
from services import AuthorizationError, NotFound, ValidationError
from services import admin, meals, plans, sharing


def test_create_meal_cleans_fields(storage, factory):
    alice = factory.user('alice@example.com')

    meal = meals.create_meal(
        storage, alice,
        name='  Pad Thai ',
        ingredients='Noodles\r\nPeanuts\n',
        video_url='https://www.youtube.com/watch?v=abc',
        cuisine_type='Thai',
        instructions='   ',
    )

    assert meal.name == 'Pad Thai'
    assert meal.ingredients == 'Noodles\nPeanuts'
    assert meal.instructions is None
    assert meal.is_private is False


@pytest.mark.parametrize('fields', [
    {'name': '   '},
    {'name': 'Soup', 'video_url': 'https://vimeo.com/123'},
    {'name': 'Soup', 'video_url': 'javascript:alert(1)'},
    {'name': 'Soup', 'cuisine_type': 'x' * 21},
    {'name': 'Soup', 'calories': 300},
])
def test_create_meal_rejects_bad_input(storage, factory, fields):
    alice = factory.user('alice@example.com')
    with pytest.raises(ValidationError):
        meals.create_meal(storage, alice, **fields)


def test_create_meal_requires_user(storage):
    with pytest.raises(AuthorizationError):
        meals.create_meal(storage, None, name='Soup')


def test_private_meals_hidden_from_others(storage, factory):
    alice = factory.user('alice@example.com')
    bob = factory.user('bob@example.com')
    secret = factory.meal(alice, 'Secret', is_private=True)
    factory.meal(alice, 'Open')

    assert meals.get_meal(storage, alice, secret.id).name == 'Secret'
    with pytest.raises(NotFound):
        meals.get_meal(storage, bob, secret.id)
    with pytest.raises(NotFound):
        meals.get_meal(storage, None, secret.id)

    assert [m.name for m in meals.visible_meals(storage, bob)] == ['Open']
    assert sorted(m.name for m in meals.visible_meals(storage, alice)) == ['Open', 'Secret']


def test_update_meal_owner_only(storage, factory):
    alice = factory.user('alice@example.com')
    bob = factory.user('bob@example.com')
    meal = factory.meal(alice, 'Curry')

    with pytest.raises(AuthorizationError):
        meals.update_meal(storage, bob, meal.id, name='Mine now')

    updated = meals.update_meal(storage, alice, meal.id, name='Green Curry', is_private=True)
    assert updated.name == 'Green Curry'
    assert updated.is_private is True


def test_delete_meal_removes_it_from_days(storage, factory):
    alice = factory.user('alice@example.com')
    bob = factory.user('bob@example.com')
    meal = factory.meal(alice, 'Curry')
    plan = factory.plan(bob)
    storage.insert(DayMeal, day_id=factory.day_ids(plan)[0], meal_id=meal.id, order_index=0)
    meal_id = meal.id

    with pytest.raises(AuthorizationError):
        meals.delete_meal(storage, bob, meal_id)

    meals.delete_meal(storage, alice, meal_id)

    assert storage.query(Meal, id=meal_id) == []
    assert storage.query(DayMeal, meal_id=meal_id) == []


def test_admin_can_delete_any_meal(storage, factory):
    alice = factory.user('alice@example.com')
    moderator = factory.user('admin@example.com')
    meal = factory.meal(alice, 'Spam', is_private=True)
    meal_id = meal.id

    meals.delete_meal(storage, moderator, meal_id)

    assert storage.query(Meal, id=meal_id) == []


def test_search_meals(storage, factory):
    alice = factory.user('alice@example.com')
    bob = factory.user('bob@example.com')
    factory.meal(alice, 'Green Curry', ingredients='Coconut milk', cuisine_type='Thai')
    factory.meal(bob, 'Carbonara', ingredients='Eggs\nPancetta', cuisine_type='Italian')
    factory.meal(bob, 'Coconut Rice', cuisine_type='Thai')
    library = meals.visible_meals(storage, alice)

    assert [m.name for m in meals.search_meals(library, 'coconut')] == ['Coconut Rice', 'Green Curry']
    assert [m.name for m in meals.search_meals(library, cuisine='Italian')] == ['Carbonara']
    assert [m.name for m in meals.search_meals(library, mine_only=True, user=alice)] == ['Green Curry']
    assert meals.search_meals(library, 'zzz') == []
    assert meals.cuisine_types(library) == ['Italian', 'Thai']


def test_require_admin(factory):
    with pytest.raises(NotFound):
        admin.require_admin(None)
    with pytest.raises(NotFound):
        admin.require_admin(factory.user('alice@example.com'))
    admin.require_admin(factory.user('admin@example.com'))


def test_admin_make_private_and_listing(storage, factory):
    alice = factory.user('alice@example.com')
    meal = factory.meal(alice, 'Toast')

    admin.make_meal_private(storage, meal.id)

    assert storage.first(Meal, id=meal.id).is_private is True
    listed = admin.list_all_meals(storage)
    assert listed[0]['user_email'] == 'alice@example.com'
    users = {u['email']: u['meal_count'] for u in admin.list_users(storage)}
    assert users == {'alice@example.com': 1}


def test_admin_delete_user_cascades(storage, factory):
    alice = factory.user('alice@example.com')
    bob = factory.user('bob@example.com')

    alice_plan = plans.create_plan(storage, alice, 'Alice week')
    alice_meal = factory.meal(alice, 'Lasagne')
    sharing.add_share(storage, alice, alice_plan.id, 'bob@example.com')
    storage.insert(IngredientStatus, plan_id=alice_plan.id, ingredient='pasta', has_item=True)

    bob_plan = plans.create_plan(storage, bob, 'Bob week')
    storage.insert(DayMeal, day_id=factory.day_ids(bob_plan)[0], meal_id=alice_meal.id, order_index=0)
    sharing.add_share(storage, bob, bob_plan.id, 'alice@example.com', 'edit')

    alice_id, alice_plan_id, alice_meal_id = alice.id, alice_plan.id, alice_meal.id
    bob_plan_id = bob_plan.id

    admin.delete_user(storage, alice_id)

    assert storage.query(User, id=alice_id) == []
    assert storage.query(Meal, user_id=alice_id) == []
    assert storage.query(MealPlan, id=alice_plan_id) == []
    assert storage.query(UserPreferences, user_id=alice_id) == []
    assert storage.query(IngredientStatus, plan_id=alice_plan_id) == []
    assert storage.query(DayMeal, meal_id=alice_meal_id) == []
    assert storage.query(PlanShare, shared_with_email='alice@example.com') == []
    # bob's plan survives without alice's meal
    assert len(storage.query(MealPlan, id=bob_plan_id)) == 1


def test_featured_plan_must_be_public(storage, factory):
    alice = factory.user('alice@example.com')
    plan = factory.plan(alice)

    with pytest.raises(ValidationError):
        admin.set_featured_plan(storage, plan.id)
    with pytest.raises(NotFound):
        admin.set_featured_plan(storage, 9999)

    sharing.toggle_public(storage, alice, plan.id)
    admin.set_featured_plan(storage, plan.id)
    assert admin.get_featured_plan_id(storage) == plan.id

    admin.set_featured_plan(storage, None)
    assert admin.get_featured_plan_id(storage) is None
