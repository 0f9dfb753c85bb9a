"""
Embedding Management Routes
API endpoints for backfilling profile embeddings and checking coverage
"""
import logging
import time

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from commute_match.schemas import BulkEmbeddingRequestSchema, EmbeddingStatsSchema
from commute_match.services import build_matching_preferences_service
from commute_match.utils.errors import MatchingError

logger = logging.getLogger(__name__)

embedding_bp = Blueprint('embeddings', __name__, url_prefix='/api/embeddings')


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


@embedding_bp.route('/bulk-generate', methods=['POST'])
def bulk_generate_embeddings():
    """
    Generate embeddings for profiles that have none (or a stale one).

    POST /api/embeddings/bulk-generate

    Request body:
    {
        "limit": 50   // default 50, capped at 500
    }

    One failing profile never aborts the run; failures are counted.
    """
    try:
        payload = BulkEmbeddingRequestSchema.model_validate(request.get_json(silent=True) or {})
        config = current_app.config
        limit = payload.limit or config.get('BULK_EMBEDDING_DEFAULT_LIMIT', 50)
        limit = min(limit, config.get('BULK_EMBEDDING_MAX_LIMIT', 500))

        logger.info(f"[EMBEDDINGS] Starting bulk generation (limit={limit})")
        start_time = time.time()

        service = build_matching_preferences_service()
        results = service.bulk_generate_embeddings(limit)

        return jsonify({
            'message': 'Embedding generation complete',
            'limit': limit,
            'results': results,
            'processing_time_seconds': round(time.time() - start_time, 2)
        }), 200

    except ValidationError as e:
        return error_response("Validation error", 400, e.errors(include_url=False, include_context=False))
    except MatchingError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"[EMBEDDINGS] Error generating embeddings: {str(e)}", exc_info=True)
        return error_response("Failed to generate embeddings", 500)


@embedding_bp.route('/stats', methods=['GET'])
def get_embedding_stats():
    """
    Get statistics about embeddings coverage.

    GET /api/embeddings/stats
    """
    try:
        service = build_matching_preferences_service()
        stats = EmbeddingStatsSchema(**service.get_embedding_stats())
        return jsonify(stats.model_dump()), 200

    except Exception as e:
        logger.error(f"[EMBEDDINGS] Error getting stats: {str(e)}", exc_info=True)
        return error_response("Failed to get embedding stats", 500)


@embedding_bp.route('/regenerate/<int:user_id>', methods=['POST'])
def regenerate_embedding(user_id: int):
    """
    Force regeneration of one profile's embedding.

    POST /api/embeddings/regenerate/:user_id
    """
    try:
        service = build_matching_preferences_service()
        result = service.regenerate_embedding(user_id)
        return jsonify(result), 200

    except MatchingError as e:
        logger.warning(f"[EMBEDDINGS] Regeneration failed for user {user_id}: {e.message}")
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.error(f"[EMBEDDINGS] Error regenerating embedding for user {user_id}: {str(e)}", exc_info=True)
        return error_response("Failed to regenerate embedding", 500)
