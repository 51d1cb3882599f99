"""
Chunked Upload Routes

Endpoints:
- POST /upload   - Append one chunk to an uploaded file
"""
from flask import Blueprint, request

from errors import UploadError
from upload_storage import is_safe_name
from . import text_response
from .. import get_registry, get_storage

uploads_bp = Blueprint('uploads', __name__)


@uploads_bp.route('/upload', methods=['POST'])
def upload_chunk():
    """
    Append the fileChunk part to {UPLOAD_DIR}/{fileId}_{fileName}.

    The first chunk for an unknown fileId registers the file. Later chunks
    always land in the file named at registration.
    """
    file_chunk = request.files.get('fileChunk')
    file_id = request.values.get('fileId', '')
    file_name = request.values.get('fileName', '')

    if file_chunk is None:
        return text_response('Invalid file chunk', 400)

    if not file_id or not file_name:
        return text_response('Missing fileId or fileName', 400)

    if not is_safe_name(file_id) or not is_safe_name(file_name):
        return text_response('Invalid fileId or fileName', 400)

    registry = get_registry()
    registry.ensure(file_id, file_name)
    record = registry.lookup(file_id)

    try:
        get_storage().append_chunk(file_id, record.file_name, file_chunk.stream)
    except UploadError as e:
        return text_response(str(e), 500)

    return text_response('File chunk uploaded successfully')
