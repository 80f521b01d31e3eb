import logging

from flask import Blueprint, Flask, jsonify, request
from flask_migrate import Migrate

from config import get_config
from constants import CUISINE_SUGGESTIONS
from models import db, DayMeal, MealPlanDay
from services import IngredientStatusStore, MealPlanStore, Storage, generate_shopping_list
from services import admin, auth, plan_editing, plans, sharing
from services import meals as meal_service
from services.errors import AuthorizationError, MealPlannerError, NotFound, StorageError, ValidationError

logger = logging.getLogger(__name__)

bp = Blueprint('planner', __name__)
migrate = Migrate()


def create_app(env=None):
    app = Flask(__name__)
    app.config.from_object(get_config(env))

    logging.basicConfig(
        level=getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    db.init_app(app)
    migrate.init_app(app, db)
    app.register_blueprint(bp)
    return app


def init_db(app):
    with app.app_context():
        db.create_all()


# ============================================
# HELPERS
# ============================================

def get_storage():
    return Storage(db.session)


def current_user():
    return auth.get_current_user()


def require_user():
    user = current_user()
    if user is None:
        raise AuthorizationError('You must be signed in')
    return user


def json_body():
    return request.get_json(silent=True) or {}


def int_field(data, name, required=True):
    value = data.get(name)
    if value is None or value == '':
        if required:
            raise ValidationError(f'{name} is required')
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{name} must be a number')


def open_store(plan_id=None):
    """Load a plan for the caller. Use as a context manager so the store is closed."""
    store = MealPlanStore(get_storage(), requested_plan_id=plan_id)
    store.load()
    return store


def plan_id_for_day(day_id):
    day = get_storage().get(MealPlanDay, 'Day not found', id=day_id)
    return day.plan_id


def plan_id_for_day_meal(day_meal_id):
    day_meal = get_storage().get(DayMeal, 'Meal is not in this plan', id=day_meal_id)
    return plan_id_for_day(day_meal.day_id)


@bp.app_errorhandler(MealPlannerError)
def handle_planner_error(error):
    if isinstance(error, StorageError):
        logger.error("Request failed with %s: %s", error.code, error.message)
    return jsonify(error=error.to_dict()), error.status


# ============================================
# ROUTES - AUTH
# ============================================

@bp.route('/auth/signup', methods=['POST'])
def signup():
    data = json_body()
    user = auth.sign_up(get_storage(), data.get('email'), data.get('password'))
    return jsonify(user=user._asdict()), 201


@bp.route('/auth/login', methods=['POST'])
def login():
    data = json_body()
    user = auth.sign_in(get_storage(), data.get('email'), data.get('password'))
    return jsonify(user=user._asdict())


@bp.route('/auth/logout', methods=['POST'])
def logout():
    auth.sign_out()
    return jsonify(ok=True)


@bp.route('/auth/me')
def me():
    user = current_user()
    return jsonify(user=user._asdict() if user else None,
                   is_admin=admin.is_admin(user.email) if user else False)


# ============================================
# ROUTES - MEALS
# ============================================

@bp.route('/meals')
def meals_list():
    user = current_user()
    meals = meal_service.visible_meals(get_storage(), user)
    meals = meal_service.search_meals(
        meals,
        query=request.args.get('q', ''),
        cuisine=request.args.get('cuisine') or None,
        mine_only=request.args.get('mine') in ('1', 'true'),
        user=user,
    )
    return jsonify(meals=[meal_service.meal_to_dict(m) for m in meals])


@bp.route('/meals', methods=['POST'])
def meal_add():
    meal = meal_service.create_meal(get_storage(), require_user(), **json_body())
    return jsonify(meal=meal_service.meal_to_dict(meal)), 201


@bp.route('/meals/cuisines')
def meal_cuisines():
    meals = meal_service.visible_meals(get_storage(), current_user())
    return jsonify(cuisines=meal_service.cuisine_types(meals),
                   suggestions=CUISINE_SUGGESTIONS)


@bp.route('/meals/<int:id>')
def meal_view(id):
    meal = meal_service.get_meal(get_storage(), current_user(), id)
    return jsonify(meal=meal_service.meal_to_dict(meal))


@bp.route('/meals/<int:id>', methods=['POST'])
def meal_edit(id):
    meal = meal_service.update_meal(get_storage(), require_user(), id, **json_body())
    return jsonify(meal=meal_service.meal_to_dict(meal))


@bp.route('/meals/<int:id>/delete', methods=['POST'])
def meal_delete(id):
    meal_service.delete_meal(get_storage(), require_user(), id)
    return jsonify(ok=True)


# ============================================
# ROUTES - PLAN VIEW
# ============================================

@bp.route('/plan')
def plan_view():
    plan_id = int_field(request.args, 'id', required=False)
    with open_store(plan_id) as store:
        store.raise_for_error()
        return jsonify(plan=store.to_dict())


@bp.route('/plan/<int:plan_id>/details', methods=['POST'])
def plan_details(plan_id):
    data = json_body()
    with open_store(plan_id) as store:
        store.raise_for_error()
        plan_editing.update_plan_details(store, data.get('name'), data.get('subtitle'))
        return jsonify(plan=store.raise_for_error().to_dict())


@bp.route('/plan/<int:plan_id>/days', methods=['POST'])
def day_add(plan_id):
    data = json_body()
    with open_store(plan_id) as store:
        store.raise_for_error()
        day_id = plan_editing.add_day(store, data.get('day_name'))
        return jsonify(day_id=day_id, plan=store.raise_for_error().to_dict()), 201


@bp.route('/days/<int:day_id>/rename', methods=['POST'])
def day_rename(day_id):
    data = json_body()
    with open_store(plan_id_for_day(day_id)) as store:
        store.raise_for_error()
        plan_editing.rename_day(store, day_id, data.get('day_name'))
        return jsonify(plan=store.raise_for_error().to_dict())


@bp.route('/days/<int:day_id>/toggle', methods=['POST'])
def day_toggle(day_id):
    with open_store(plan_id_for_day(day_id)) as store:
        store.raise_for_error()
        day = store.find_day(day_id)
        if day is None:
            raise NotFound('Day not found')
        plan_editing.set_day_active(store, day_id, not day.is_active)
        return jsonify(plan=store.raise_for_error().to_dict())


@bp.route('/days/<int:day_id>/delete', methods=['POST'])
def day_delete(day_id):
    with open_store(plan_id_for_day(day_id)) as store:
        store.raise_for_error()
        plan_editing.delete_day(store, day_id)
        return jsonify(plan=store.raise_for_error().to_dict())


@bp.route('/days/<int:day_id>/meals', methods=['POST'])
def day_meal_add(day_id):
    meal_id = int_field(json_body(), 'meal_id')
    with open_store(plan_id_for_day(day_id)) as store:
        store.raise_for_error()
        plan_editing.add_meal_to_day(store, day_id, meal_id)
        return jsonify(plan=store.raise_for_error().to_dict()), 201


@bp.route('/days/<int:day_id>/reorder', methods=['POST'])
def day_meal_reorder(day_id):
    data = json_body()
    old_index = int_field(data, 'from')
    new_index = int_field(data, 'to')
    with open_store(plan_id_for_day(day_id)) as store:
        store.raise_for_error()
        plan_editing.reorder_day_meals(store, day_id, old_index, new_index)
        return jsonify(plan=store.raise_for_error().to_dict())


@bp.route('/day-meals/<int:day_meal_id>/delete', methods=['POST'])
def day_meal_delete(day_meal_id):
    with open_store(plan_id_for_day_meal(day_meal_id)) as store:
        store.raise_for_error()
        plan_editing.remove_meal_from_day(store, day_meal_id)
        return jsonify(plan=store.raise_for_error().to_dict())


# ============================================
# ROUTES - SHOPPING LIST
# ============================================

@bp.route('/plan/<int:plan_id>/shopping')
def shopping_list(plan_id):
    with open_store(plan_id) as store:
        store.raise_for_error()
        status = IngredientStatusStore(store.storage, store.plan_id)
        status.load()
        items = generate_shopping_list(store.active_days, status.status_map)
        return jsonify(items=[item.to_dict() for item in items], error=status.error)


@bp.route('/plan/<int:plan_id>/shopping/status', methods=['POST'])
def shopping_status(plan_id):
    data = json_body()
    require_user()
    with open_store(plan_id) as store:
        store.raise_for_error()
        plan_editing.require_edit(store)
        status = IngredientStatusStore(store.storage, store.plan_id)
        has_item = status.set_status(data.get('ingredient'), bool(data.get('has_item')))
        return jsonify(ingredient=data.get('ingredient'), has_item=has_item)


@bp.route('/plan/<int:plan_id>/shopping/reset', methods=['POST'])
def shopping_reset(plan_id):
    with open_store(plan_id) as store:
        store.raise_for_error()
        plan_editing.require_edit(store)
        IngredientStatusStore(store.storage, store.plan_id).reset()
        return jsonify(ok=True)


# ============================================
# ROUTES - PLANS & SHARING
# ============================================

@bp.route('/plans')
def plans_list():
    return jsonify(plans.list_plans(get_storage(), require_user()))


@bp.route('/plans', methods=['POST'])
def plan_create():
    plan = plans.create_plan(get_storage(), require_user(), json_body().get('name'))
    return jsonify(plan={'id': plan.id, 'name': plan.name}), 201


@bp.route('/plans/<int:plan_id>/delete', methods=['POST'])
def plan_delete(plan_id):
    plans.delete_plan(get_storage(), require_user(), plan_id)
    return jsonify(ok=True)


@bp.route('/plans/<int:plan_id>/default', methods=['POST'])
def plan_set_default(plan_id):
    plans.set_default_plan(get_storage(), require_user(), plan_id)
    return jsonify(default_plan_id=plan_id)


@bp.route('/plans/<int:plan_id>/visibility', methods=['POST'])
def plan_toggle_public(plan_id):
    return jsonify(sharing.toggle_public(get_storage(), require_user(), plan_id))


@bp.route('/plans/<int:plan_id>/shares')
def plan_shares(plan_id):
    shares = sharing.list_shares(get_storage(), require_user(), plan_id)
    return jsonify(shares=[sharing.share_to_dict(s) for s in shares])


@bp.route('/plans/<int:plan_id>/shares', methods=['POST'])
def plan_share_add(plan_id):
    data = json_body()
    share = sharing.add_share(get_storage(), require_user(), plan_id,
                              data.get('email'), data.get('permission', 'view'))
    return jsonify(share=sharing.share_to_dict(share)), 201


@bp.route('/shares/<int:share_id>/delete', methods=['POST'])
def plan_share_delete(share_id):
    sharing.remove_share(get_storage(), require_user(), share_id)
    return jsonify(ok=True)


@bp.route('/share/<token>')
def shared_plan(token):
    return jsonify(plan=sharing.load_shared_plan(get_storage(), token))


# ============================================
# ROUTES - ADMIN
# ============================================

@bp.route('/admin/meals')
def admin_meals():
    admin.require_admin(current_user())
    return jsonify(meals=admin.list_all_meals(get_storage()))


@bp.route('/admin/users')
def admin_users():
    admin.require_admin(current_user())
    return jsonify(users=admin.list_users(get_storage()))


@bp.route('/admin/meals/<int:id>/delete', methods=['POST'])
def admin_meal_delete(id):
    admin.require_admin(current_user())
    admin.delete_meal(get_storage(), id)
    return jsonify(ok=True)


@bp.route('/admin/meals/<int:id>/make-private', methods=['POST'])
def admin_meal_make_private(id):
    admin.require_admin(current_user())
    admin.make_meal_private(get_storage(), id)
    return jsonify(ok=True)


@bp.route('/admin/users/<int:id>/delete', methods=['POST'])
def admin_user_delete(id):
    admin.require_admin(current_user())
    admin.delete_user(get_storage(), id)
    return jsonify(ok=True)


@bp.route('/admin/featured-plan')
def admin_featured_plan():
    admin.require_admin(current_user())
    return jsonify(plan_id=admin.get_featured_plan_id(get_storage()))


@bp.route('/admin/featured-plan', methods=['POST'])
def admin_set_featured_plan():
    admin.require_admin(current_user())
    plan_id = int_field(json_body(), 'plan_id', required=False)
    return jsonify(plan_id=admin.set_featured_plan(get_storage(), plan_id))


if __name__ == '__main__':
    app = create_app()
    init_db(app)
    # host='0.0.0.0' allows access from other devices on the network
    app.run(debug=app.config.get('DEBUG', False), host='0.0.0.0', port=5000, use_reloader=False)
