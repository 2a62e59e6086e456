from flask import Blueprint, current_app, jsonify

from amble.services.provider_factory import get_file_service

bp = Blueprint('main', __name__, url_prefix='/api')


@bp.route('/health')
def health():
    return jsonify({'status': 'success', 'message': 'ok'})


@bp.route('/stats')
def stats():
    try:
        app_stats = get_file_service().stats()
        return jsonify({'status': 'success', 'stats': app_stats.to_dict()})
    except Exception as e:
        current_app.logger.error(f"Error computing stats: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Could not load stats.'}), 500
