"""
Matching Preferences Routes
CRUD endpoints for a user's commute-partner profile.
"""
import logging

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from commute_match.schemas import MatchingPreferencesCreateSchema, MatchingPreferencesUpdateSchema
from commute_match.services import build_matching_preferences_service
from commute_match.utils.errors import MatchingError

logger = logging.getLogger(__name__)

preferences_bp = Blueprint('matching_preferences', __name__, url_prefix='/api/matching-preferences')


def error_response(message: str, status: int = 400, details=None):
    """Helper to create error responses"""
    response = {
        'error': 'Error',
        'message': message,
        'status': status
    }
    if details:
        response['details'] = details
    return jsonify(response), status


@preferences_bp.route('/<int:user_id>', methods=['POST'])
def create_preferences(user_id: int):
    """
    Create matching preferences for a user.

    POST /api/matching-preferences/:user_id

    Request body:
    {
        "profession": "Software Engineer",
        "about_me": "Cyclist, podcast fan",
        "languages": ["English", "Spanish"],
        "interests": ["cycling", "podcasts"],
        "commute_window": {"start": "08:00", "end": "09:00"},
        "commute_days": ["MONDAY", "WEDNESDAY"]
    }
    """
    try:
        data = MatchingPreferencesCreateSchema.model_validate(request.get_json(silent=True) or {})
        service = build_matching_preferences_service()
        preferences = service.create_preferences(user_id, data.to_fields())

        return jsonify({
            'message': 'Matching preferences created successfully',
            'preferences': preferences.to_dict()
        }), 201

    except ValidationError as e:
        return error_response("Validation error", 400, e.errors(include_url=False, include_context=False))
    except MatchingError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error creating preferences for user {user_id}: {str(e)}", exc_info=True)
        return error_response("Failed to create matching preferences", 500)


@preferences_bp.route('/<int:user_id>', methods=['PUT'])
def update_preferences(user_id: int):
    """
    Partially update matching preferences.

    PUT /api/matching-preferences/:user_id

    Only the fields present in the body change. Changing profession, about_me,
    interests or languages invalidates the stored embedding.
    """
    try:
        data = MatchingPreferencesUpdateSchema.model_validate(request.get_json(silent=True) or {})
        service = build_matching_preferences_service()
        preferences = service.update_preferences(user_id, data.to_fields())

        return jsonify({
            'message': 'Matching preferences updated successfully',
            'preferences': preferences.to_dict()
        }), 200

    except ValidationError as e:
        return error_response("Validation error", 400, e.errors(include_url=False, include_context=False))
    except MatchingError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error updating preferences for user {user_id}: {str(e)}", exc_info=True)
        return error_response("Failed to update matching preferences", 500)


@preferences_bp.route('/<int:user_id>', methods=['GET'])
def get_preferences(user_id: int):
    """
    Get matching preferences.

    GET /api/matching-preferences/:user_id
    """
    try:
        service = build_matching_preferences_service()
        preferences = service.get_preferences(user_id)
        return jsonify({'preferences': preferences.to_dict()}), 200

    except MatchingError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error fetching preferences for user {user_id}: {str(e)}", exc_info=True)
        return error_response("Failed to fetch matching preferences", 500)


@preferences_bp.route('/<int:user_id>', methods=['DELETE'])
def delete_preferences(user_id: int):
    """
    Delete matching preferences.

    DELETE /api/matching-preferences/:user_id
    """
    try:
        service = build_matching_preferences_service()
        service.delete_preferences(user_id)
        return jsonify({'message': 'Matching preferences deleted successfully'}), 200

    except MatchingError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"Error deleting preferences for user {user_id}: {str(e)}", exc_info=True)
        return error_response("Failed to delete matching preferences", 500)
