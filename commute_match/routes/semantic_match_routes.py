"""
Semantic Match Routes
Commute partner ranking and pairwise similarity diagnostics.
"""
import logging

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from commute_match.schemas import SemanticMatchRequestSchema
from commute_match.services import build_semantic_matching_service
from commute_match.services.semantic_matching_service import MatchQuery, MatchWeights
from commute_match.utils.errors import MatchingError

logger = logging.getLogger(__name__)

semantic_match_bp = Blueprint('semantic_matching', __name__, url_prefix='/api/matching')


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


def _build_query(user_id: int, payload: SemanticMatchRequestSchema) -> MatchQuery:
    config = current_app.config
    limit = payload.limit if payload.limit is not None else config.get('MATCH_DEFAULT_LIMIT', 50)
    limit = min(limit, config.get('MATCH_MAX_LIMIT', 200))
    min_score = payload.min_score if payload.min_score is not None else config.get('MATCH_DEFAULT_MIN_SCORE', 0.1)
    weights = MatchWeights.from_dict(payload.weights.model_dump() if payload.weights else None)
    return MatchQuery(user_id=user_id, weights=weights, limit=limit, min_score=min_score)


@semantic_match_bp.route('/<int:user_id>/matches', methods=['GET', 'POST'])
def find_matches(user_id: int):
    """
    Rank commute partners for a user.

    GET  /api/matching/:user_id/matches?limit=20&min_score=0.3
    POST /api/matching/:user_id/matches

    Request body (POST, all optional):
    {
        "weights": {"time": 0.3, "days": 0.2, "lang": 0.1, "ints": 0.15, "sem": 0.2, "prof": 0.05},
        "limit": 20,
        "min_score": 0.3
    }

    Missing weights fall back to the defaults. Body values override query values.
    """
    try:
        raw = {
            'limit': request.args.get('limit'),
            'min_score': request.args.get('min_score'),
        }
        raw = {k: v for k, v in raw.items() if v is not None}
        body = request.get_json(silent=True) if request.method == 'POST' else None
        if isinstance(body, dict):
            raw.update(body)

        payload = SemanticMatchRequestSchema.model_validate(raw)
        query = _build_query(user_id, payload)

        service = build_semantic_matching_service()
        report = service.find_semantic_matches(query)

        logger.info(f"[MATCHING] Returned {report.count} matches for user {user_id}")

        return jsonify({
            'message': 'Semantic matches found successfully',
            **report.to_dict()
        }), 200

    except ValidationError as e:
        return error_response("Validation error", 400, e.errors(include_url=False, include_context=False))
    except MatchingError as e:
        return error_response(e.message, e.status_code, e.to_dict())
    except Exception as e:
        logger.error(f"[MATCHING] Error finding matches for user {user_id}: {str(e)}", exc_info=True)
        return error_response("Failed to find matches", 500)


@semantic_match_bp.route('/<int:user_id>/similarity/<int:target_user_id>', methods=['GET'])
def get_similarity(user_id: int, target_user_id: int):
    """
    Raw similarity components between two users.

    GET /api/matching/:user_id/similarity/:target_user_id
    """
    try:
        service = build_semantic_matching_service()
        metrics = service.get_similarity_metrics(user_id, target_user_id)

        return jsonify({
            'user_id': user_id,
            'target_user_id': target_user_id,
            'metrics': metrics.to_dict()
        }), 200

    except MatchingError as e:
        return error_response(e.message, e.status_code, e.to_dict())
    except Exception as e:
        logger.error(
            f"[MATCHING] Error computing similarity {user_id} -> {target_user_id}: {str(e)}",
            exc_info=True
        )
        return error_response("Failed to compute similarity", 500)
