"""Tests for the optimistic update helper and the ingredient status store."""

import pytest

from models import IngredientStatus
from services import IngredientStatusStore, Optimistic, TransientStorageError, ValidationError


def test_optimistic_writes_immediately_and_rolls_back_exactly():
    box = {'value': [1, 2, 3]}
    original = box['value']

    change = Optimistic(lambda: box['value'], lambda v: box.__setitem__('value', v), lambda v: v[::-1])
    assert box['value'] == [3, 2, 1]

    change.rollback()
    assert box['value'] is original
    assert change.settled


def test_optimistic_context_manager_rolls_back_on_error():
    box = {'value': 'before'}

    with pytest.raises(RuntimeError):
        with Optimistic(lambda: box['value'], lambda v: box.__setitem__('value', v), lambda _: 'after'):
            assert box['value'] == 'after'
            raise RuntimeError('write failed')

    assert box['value'] == 'before'


def test_optimistic_commit_keeps_value():
    box = {'value': 1}
    with Optimistic(lambda: box['value'], lambda v: box.__setitem__('value', v), lambda v: v + 1) as change:
        pass
    assert change.settled
    change.rollback()
    assert box['value'] == 2


def test_status_store_set_and_load(storage, factory):
    user = factory.user('alice@example.com')
    plan = factory.plan(user)

    status = IngredientStatusStore(storage, plan.id)
    status.set_status(' 2 Eggs ', True)

    assert status.status_map == {'2 eggs': True}
    assert status.is_checked('2 EGGS')

    reloaded = IngredientStatusStore(storage, plan.id)
    assert reloaded.load() == {'2 eggs': True}

    status.set_status('2 eggs', False)
    assert storage.query(IngredientStatus, plan_id=plan.id)[0].has_item is False
    assert len(storage.query(IngredientStatus, plan_id=plan.id)) == 1


def test_status_store_rejects_blank_ingredient(storage, factory):
    plan = factory.plan(factory.user('alice@example.com'))
    with pytest.raises(ValidationError):
        IngredientStatusStore(storage, plan.id).set_status('   ', True)


def test_status_store_rolls_back_failed_write(storage, factory, monkeypatch):
    plan = factory.plan(factory.user('alice@example.com'))
    status = IngredientStatusStore(storage, plan.id)
    status.set_status('flour', True)

    def fail(*args, **kwargs):
        raise TransientStorageError()

    monkeypatch.setattr(storage, 'upsert', fail)

    with pytest.raises(TransientStorageError):
        status.set_status('flour', False)
    assert status.status_map == {'flour': True}
    assert status.error == TransientStorageError.default_message

    # a key that was absent before the failed write stays absent
    with pytest.raises(TransientStorageError):
        status.set_status('sugar', True)
    assert 'sugar' not in status.status_map


def test_status_store_reset(storage, factory):
    user = factory.user('alice@example.com')
    plan = factory.plan(user)
    other = factory.plan(user, name='Other')

    status = IngredientStatusStore(storage, plan.id)
    status.set_status('flour', True)
    status.set_status('milk', True)
    IngredientStatusStore(storage, other.id).set_status('flour', True)

    status.reset()

    assert status.status_map == {}
    assert storage.query(IngredientStatus, plan_id=plan.id) == []
    assert len(storage.query(IngredientStatus, plan_id=other.id)) == 1


def test_status_store_load_fails_softly(storage, factory, monkeypatch):
    plan = factory.plan(factory.user('alice@example.com'))
    status = IngredientStatusStore(storage, plan.id)

    def fail(*args, **kwargs):
        raise TransientStorageError()

    monkeypatch.setattr(storage, 'query', fail)

    assert status.load() == {}
    assert status.error == TransientStorageError.default_message
    assert status.is_loading is False
