from flask import Blueprint, current_app, jsonify, request

from reviewer.errors import ReviewError

bp = Blueprint('main', __name__, url_prefix='/api')


# Renders every expected failure as JSON with its own status code
@bp.app_errorhandler(ReviewError)
def handle_review_error(error):
    if error.status_code >= 500:
        current_app.logger.error(f"{request.method} {request.path} failed: {error.message}")
    return jsonify(error.to_dict()), error.status_code


# Import routes at the bottom
from reviewer.main import routes
