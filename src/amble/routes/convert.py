import io

from flask import Blueprint, current_app, jsonify, request, send_file

from amble.services.capabilities import capability_table, supported_targets
from amble.services.conversion_result import ConversionResult
from amble.services.decoder import SourceFile
from amble.services.errors import UnsupportedConversion
from amble.services.file_service import RecordNotFound
from amble.services.provider_factory import get_file_service
from amble.utils.file_utils import extension_of

bp = Blueprint('convert', __name__, url_prefix='/api')


def failure_response(result: ConversionResult, **extra):
    """JSON error envelope for a failed conversion: 400 when unsupported, 422 otherwise."""
    status_code = 400 if result.error_type == UnsupportedConversion.__name__ else 422
    body = {'status': 'error', 'error': result.error, 'error_type': result.error_type}
    body.update(extra)
    return jsonify(body), status_code


def read_target_format():
    payload = request.get_json(silent=True) or {}
    return (request.form.get('target_format') or payload.get('target_format') or '').strip()


@bp.route('/convert/capabilities')
def capabilities():
    return jsonify({'status': 'success', 'capabilities': capability_table()})


@bp.route('/convert/formats')
def formats():
    filename = request.args.get('filename', '')
    if not filename:
        return jsonify({'status': 'error', 'message': 'filename is required'}), 400
    return jsonify({
        'status': 'success',
        'source': extension_of(filename),
        'targets': supported_targets(filename),
    })


@bp.route('/convert', methods=['POST'])
def convert_upload():
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return jsonify({'status': 'error', 'message': 'No file provided'}), 400
    target_format = read_target_format()
    if not target_format:
        return jsonify({'status': 'error', 'message': 'target_format is required'}), 400

    source = SourceFile(content=upload.read(), filename=upload.filename, media_type=upload.mimetype)
    try:
        result, job = get_file_service().convert_upload(source, target_format)
    except Exception as e:
        current_app.logger.error(f"Error converting upload {upload.filename}: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Internal server error'}), 500

    if not result.success:
        return failure_response(result, conversion_id=job.id)

    response = send_file(
        io.BytesIO(result.output),
        mimetype=result.mime_type,
        as_attachment=True,
        download_name=result.filename,
    )
    response.headers['X-Conversion-Id'] = job.id
    return response


@bp.route('/conversions')
def list_conversions():
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', 20, type=int)
    try:
        result = get_file_service().list_conversions(max(page, 1), max(per_page, 1))
        return jsonify({'status': 'success', **result.to_dict()})
    except Exception as e:
        current_app.logger.error(f"Error listing conversions: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Internal server error'}), 500


@bp.route('/conversions/<job_id>/download')
def download_conversion(job_id):
    try:
        job, data = get_file_service().download_conversion(job_id)
    except (RecordNotFound, KeyError):
        return jsonify({'status': 'error', 'message': 'Conversion output not found'}), 404
    except Exception as e:
        current_app.logger.error(f"Error downloading conversion {job_id}: {e}", exc_info=True)
        return jsonify({'status': 'error', 'message': 'Internal server error'}), 500
    return send_file(io.BytesIO(data), mimetype=job.mime_type, as_attachment=True, download_name=job.output_name)
