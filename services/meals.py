"""
Meal Library Service

Creating, editing, deleting and browsing meals.
"""

import logging

from sqlalchemy import or_

from constants import MAX_LENGTHS
from models import Meal
from utils.sanitizer import is_video_url, sanitize_optional, sanitize_text
from .admin import is_admin
from .errors import AuthorizationError, NotFound, ValidationError
from .matching import fuzzy_match

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('name', 'ingredients', 'instructions', 'video_url', 'cuisine_type', 'is_private')


def _clean_fields(fields, partial=False):
    """Validate and clean meal form fields. Blank optional fields become None."""
    cleaned = {}

    if 'name' in fields or not partial:
        name = sanitize_text(fields.get('name'), MAX_LENGTHS['meal_name'])
        if not name:
            raise ValidationError('Meal name is required')
        cleaned['name'] = name

    if 'ingredients' in fields:
        cleaned['ingredients'] = sanitize_optional(fields['ingredients'], MAX_LENGTHS['ingredients'])
    if 'instructions' in fields:
        cleaned['instructions'] = sanitize_optional(fields['instructions'], MAX_LENGTHS['instructions'])

    if 'video_url' in fields:
        video_url = sanitize_optional(fields['video_url'], MAX_LENGTHS['video_url'])
        if video_url and not is_video_url(video_url):
            raise ValidationError('Video link must be a YouTube or TikTok URL')
        cleaned['video_url'] = video_url

    if 'cuisine_type' in fields:
        cuisine = sanitize_optional(fields['cuisine_type'], 100)
        if cuisine and len(cuisine) > MAX_LENGTHS['cuisine_type']:
            raise ValidationError(f"Cuisine must be {MAX_LENGTHS['cuisine_type']} characters or fewer")
        cleaned['cuisine_type'] = cuisine

    if 'is_private' in fields:
        cleaned['is_private'] = bool(fields['is_private'])

    return cleaned


def _require_user(user):
    if user is None:
        raise AuthorizationError('You must be logged in to manage meals')


def create_meal(storage, user, **fields):
    _require_user(user)
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")
    values = _clean_fields(fields)
    values.setdefault('is_private', False)
    meal = storage.insert(Meal, user_id=user.id, **values)
    logger.info("User %s added meal %s", user.id, meal.id)
    return meal


def get_meal(storage, user, meal_id):
    """Fetch a meal the caller may see: public, or their own."""
    meal = storage.first(Meal, id=meal_id)
    if meal is None or (meal.is_private and (user is None or meal.user_id != user.id)):
        raise NotFound('Meal not found')
    return meal


def update_meal(storage, user, meal_id, **fields):
    _require_user(user)
    meal = get_meal(storage, user, meal_id)
    if meal.user_id != user.id:
        raise AuthorizationError('Only the owner can edit this meal')
    patch = _clean_fields({k: v for k, v in fields.items() if k in EDITABLE_FIELDS}, partial=True)
    if not patch:
        return meal
    storage.update(Meal, {'id': meal.id}, patch)
    return meal


def delete_meal(storage, user, meal_id):
    """Owners and admins can delete. Storage removes it from every day."""
    _require_user(user)
    admin = is_admin(user.email)
    if admin:
        meal = storage.get(Meal, 'Meal not found', id=meal_id)
    else:
        meal = get_meal(storage, user, meal_id)
    if meal.user_id != user.id and not admin:
        raise AuthorizationError('Only the owner can delete this meal')
    storage.delete(Meal, id=meal.id)
    logger.info("User %s deleted meal %s", user.id, meal_id)


def visible_meals(storage, user):
    """Public meals plus the caller's private ones, newest first."""
    query = storage.session.query(Meal)
    if user is None:
        query = query.filter(Meal.is_private.is_(False))
    else:
        query = query.filter(or_(Meal.is_private.is_(False), Meal.user_id == user.id))
    return query.order_by(Meal.created_at.desc(), Meal.id.desc()).all()


def search_meals(meals, query='', cuisine=None, mine_only=False, user=None):
    """
    Filter and rank meals for the library and the day meal picker.

    With a search query, meals are ranked by the best fuzzy score over
    name, cuisine and ingredients; without one the input order is kept.
    """
    candidates = []
    for meal in meals:
        if mine_only and (user is None or meal.user_id != user.id):
            continue
        if cuisine and meal.cuisine_type != cuisine:
            continue
        candidates.append(meal)

    if not query:
        return candidates

    scored = []
    for meal in candidates:
        score = max(
            fuzzy_match(meal.name, query),
            fuzzy_match(meal.cuisine_type or '', query),
            fuzzy_match(meal.ingredients or '', query),
        )
        if score > 0:
            scored.append((score, meal))
    # sort is stable, so equal scores keep their original order
    scored.sort(key=lambda pair: pair[0], reverse=True)
    return [meal for _score, meal in scored]


def cuisine_types(meals):
    return sorted({meal.cuisine_type for meal in meals if meal.cuisine_type})


def meal_to_dict(meal):
    return {
        'id': meal.id,
        'user_id': meal.user_id,
        'name': meal.name,
        'ingredients': meal.ingredients,
        'instructions': meal.instructions,
        'video_url': meal.video_url,
        'cuisine_type': meal.cuisine_type,
        'is_private': meal.is_private,
        'created_at': meal.created_at.isoformat() if meal.created_at else None,
    }
