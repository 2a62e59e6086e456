import io

from flask import Blueprint, current_app, jsonify, request, send_file

from amble.routes.convert import failure_response, read_target_format
from amble.services.file_service import RecordNotFound
from amble.services.provider_factory import get_file_service
from amble.services.search_service import build_search_params

bp = Blueprint('files', __name__, url_prefix='/api')


def _parse_tags(raw):
    return [tag.strip() for tag in (raw or '').split(',') if tag.strip()]


def _not_found(file_id):
    return jsonify({'status': 'error', 'message': f'File not found: {file_id}'}), 404


@bp.route('/files', methods=['POST'])
def upload_file():
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return jsonify({'status': 'error', 'message': 'No file provided'}), 400
    try:
        record = get_file_service().upload(
            upload.read(),
            upload.filename,
            name=request.form.get('name'),
            media_type=upload.mimetype,
            topic=request.form.get('topic'),
            description=request.form.get('description'),
            tags=_parse_tags(request.form.get('tags')),
        )
        return jsonify({'status': 'success', 'file': record.to_dict()}), 201
    except Exception as e:
        current_app.logger.error(f"Error uploading {upload.filename}: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Upload failed'}), 500


@bp.route('/files')
def search_files():
    try:
        params = build_search_params(request.args, current_app.config)
        result = get_file_service().search(params)
        return jsonify({'status': 'success', **result.to_dict()})
    except Exception as e:
        current_app.logger.error(f"Error searching files: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Search failed'}), 500


@bp.route('/files/<file_id>')
def get_file(file_id):
    try:
        record = get_file_service().get(file_id)
    except RecordNotFound:
        return _not_found(file_id)
    return jsonify({'status': 'success', 'file': record.to_dict()})


@bp.route('/files/<file_id>/download')
def download_file(file_id):
    try:
        record, data = get_file_service().download(file_id)
    except (RecordNotFound, KeyError):
        return _not_found(file_id)
    except Exception as e:
        current_app.logger.error(f"Error downloading file {file_id}: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Internal server error'}), 500
    return send_file(
        io.BytesIO(data),
        mimetype=record.media_type or 'application/octet-stream',
        as_attachment=True,
        download_name=record.original_name,
    )


@bp.route('/files/<file_id>', methods=['DELETE'])
def delete_file(file_id):
    try:
        deleted = get_file_service().delete(file_id)
    except Exception as e:
        current_app.logger.error(f"Error deleting file {file_id}: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Internal server error'}), 500
    if not deleted:
        return _not_found(file_id)
    return jsonify({'status': 'success', 'message': 'File deleted'})


@bp.route('/files/<file_id>/convert', methods=['POST'])
def convert_stored_file(file_id):
    target_format = read_target_format()
    if not target_format:
        return jsonify({'status': 'error', 'message': 'target_format is required'}), 400
    try:
        result, job = get_file_service().convert_stored(file_id, target_format)
    except (RecordNotFound, KeyError):
        return _not_found(file_id)
    except Exception as e:
        current_app.logger.error(f"Error converting file {file_id}: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Internal server error'}), 500

    if not result.success:
        return failure_response(result, conversion=job.to_dict())
    return jsonify({'status': 'success', 'result': result.to_dict(), 'conversion': job.to_dict()}), 201
