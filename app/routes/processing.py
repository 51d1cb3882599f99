"""
File Status and Processing Routes

Endpoints:
- GET  /file-info       - Status of every registered file
- POST /process-video   - Start transcoding one file
"""
from flask import Blueprint, Response, request, current_app

from job_coordinator import JobStartResult
from . import text_response
from .. import get_registry, get_coordinator

processing_bp = Blueprint('processing', __name__)


@processing_bp.route('/file-info', methods=['GET'])
def get_file_info():
    """Map of fileId -> {file_name, is_processed, is_processing}"""
    try:
        payload = get_registry().serialize()
    except (TypeError, ValueError) as e:
        current_app.logger.error(f"Error occured while marshalling json {e}")
        return text_response('Not able to get all the file info at the moment', 500)

    return Response(payload, status=200, mimetype='application/json')


@processing_bp.route('/process-video', methods=['POST'])
def process_video():
    """
    Queue transcoding for fileId.

    Unknown ids are accepted and only logged, so the response does not
    reveal which ids exist.
    """
    file_id = request.values.get('fileId', '')
    if not file_id:
        return text_response('Missing fileId', 400)

    result = get_coordinator().start_job(file_id)

    if result == JobStartResult.ALREADY_RUNNING:
        return text_response('Already processing', 409)
    if result == JobStartResult.SHUTTING_DOWN:
        return text_response('Service is shutting down', 503)

    return text_response('Started processing')
