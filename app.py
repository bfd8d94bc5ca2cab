"""
Household Provisioning Service

Flask application exposing the provisioning engine as JSON endpoints:
recipe availability, weekly shortfall, cooking a planned meal, shopping
list synthesis and converting purchases into inventory.

Household membership and authentication are handled in front of this
service; every route trusts the household id it is given.
"""

import logging
import sqlite3

from flask import Blueprint, Flask, current_app, jsonify, request
from sqlalchemy import event
from sqlalchemy.engine import Engine
from werkzeug.exceptions import HTTPException

from config import get_config
from constants import reasons
from models import db
from services import (
    LoggingNotifier,
    ProvisioningError,
    check_meal_plan_availability,
    check_recipe_availability,
    convert_purchases,
    cook_meal,
    synthesize_shopping_list,
)

logger = logging.getLogger(__name__)

api = Blueprint('provisioning', __name__)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    # Enable SQLite foreign key enforcement so unlinking cascades work
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_notifier():
    return current_app.extensions.get('change_notifier')


def ok(data, message=None, status=200):
    body = {'success': True, 'data': data}
    if message:
        body['message'] = message
    return jsonify(body), status


# ============================================
# ROUTES - HEALTH
# ============================================

@api.route('/health')
def health():
    return jsonify({'status': 'healthy'})


# ============================================
# ROUTES - RECIPES
# ============================================

@api.route('/households/<household_id>/recipes/<recipe_id>/validate-ingredients', methods=['POST'])
def recipe_validate_ingredients(household_id, recipe_id):
    return ok(check_recipe_availability(household_id, recipe_id))


# ============================================
# ROUTES - MEAL PLANS
# ============================================

@api.route('/households/<household_id>/meal-plans/<plan_id>/ingredient-availability')
def meal_plan_ingredient_availability(household_id, plan_id):
    return ok(check_meal_plan_availability(household_id, plan_id))


@api.route('/households/<household_id>/meal-plans/<plan_id>/meals/<meal_id>/cook', methods=['POST'])
def meal_plan_cook(household_id, plan_id, meal_id):
    outcome = cook_meal(household_id, plan_id, meal_id, notifier=get_notifier())
    if not outcome.cooked:
        return jsonify({
            'success': False,
            'error': 'Insufficient ingredients to cook this meal',
            'code': outcome.reason,
            'details': outcome.to_dict(),
        }), 400
    return ok(outcome.to_dict(), 'Meal marked as cooked and ingredients deducted from inventory')


@api.route('/households/<household_id>/meal-plans/<plan_id>/generate-shopping-list', methods=['POST'])
def meal_plan_generate_shopping_list(household_id, plan_id):
    result = synthesize_shopping_list(household_id, plan_id, notifier=get_notifier())
    return ok(result, f"Added {result['itemsAdded']} items to shopping list", status=201)


# ============================================
# ROUTES - SHOPPING LIST
# ============================================

@api.route('/households/<household_id>/shopping-list/convert-to-inventory', methods=['POST'])
def shopping_convert_to_inventory(household_id):
    body = request.get_json(silent=True) or {}
    result = convert_purchases(
        household_id,
        item_ids=body.get('itemIds'),
        convert_all_completed=body.get('convertAllCompleted') is True,
        notifier=get_notifier(),
    )
    converted = result['summary']['totalConverted']
    return ok(result, f"Successfully converted {converted} shopping list items to inventory")


# ============================================
# ERROR HANDLERS
# ============================================

def provisioning_error(e):
    return jsonify(e.to_dict()), e.status_code


def http_error(e):
    return jsonify({'success': False, 'error': e.description, 'code': e.name.upper().replace(' ', '_')}), e.code


def unexpected_error(e):
    logger.exception("Unhandled error on %s %s", request.method, request.path)
    return jsonify({'success': False, 'error': 'Internal server error', 'code': reasons.INTERNAL_ERROR}), 500


# ============================================
# APPLICATION FACTORY
# ============================================

def configure_logging(app):
    level = app.config.get('LOG_LEVEL', 'INFO')
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    logging.getLogger().setLevel(level)


def create_app(config_name=None, notifier=None):
    """Build the Flask app. `notifier` receives change events; defaults to logging them."""
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    configure_logging(app)
    db.init_app(app)
    app.extensions['change_notifier'] = notifier if notifier is not None else LoggingNotifier()

    app.register_blueprint(api)
    app.register_error_handler(ProvisioningError, provisioning_error)
    app.register_error_handler(HTTPException, http_error)
    app.register_error_handler(Exception, unexpected_error)

    @app.cli.command('init-db')
    def init_db_command():
        """Create the database tables."""
        init_db(app)
        print("Database initialized")

    return app


def init_db(app):
    with app.app_context():
        db.create_all()


app = create_app()


if __name__ == '__main__':
    init_db(app)
    # host='0.0.0.0' allows access from other devices on the network
    app.run(debug=True, host='0.0.0.0', port=5000, use_reloader=False)
