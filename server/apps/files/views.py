"""JSON API views for files app.

Views translate HTTP to service calls and back: they resolve the
authenticated identity, enforce ownership for deletes, and map the
file error taxonomy to status codes. Storage and integrity failures
get a generic message so internal paths never leak.
"""

import json
import logging
from collections.abc import Callable
from functools import wraps
from http import HTTPStatus
from typing import Any, Final

from django.conf import settings
from django.core.files.uploadedfile import UploadedFile
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.http import content_disposition_header
from django.views.decorators.http import require_GET, require_http_methods, require_POST
from returns.pipeline import is_successful
from returns.result import Result

from server.apps.files.exceptions import (
    ConflictError,
    FileOperationError,
    IntegrityError,
    NotFoundError,
    ValidationError,
)
from server.apps.files.identity import Identity
from server.apps.files.infrastructure.metadata import detect_content_type
from server.apps.files.logic.file_operations import get_file_service
from server.apps.files.logic.sort_filter import list_for_owner, sort_and_filter
from server.apps.files.logic.sync_operations import compare
from server.apps.files.repositories import DjangoMetadataRepository

logger = logging.getLogger(__name__)

_UPLOAD_FIELD: Final = 'file'
_GENERIC_SERVER_ERROR: Final = 'Internal storage error'

# Order matters: IntegrityError is a NotFoundError subtype
_STATUS_BY_ERROR: Final = (
    (IntegrityError, HTTPStatus.INTERNAL_SERVER_ERROR),
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (ValidationError, HTTPStatus.BAD_REQUEST),
    (ConflictError, HTTPStatus.CONFLICT),
)

_ViewFunc = Callable[..., HttpResponse]


def _error(message: str, status: int) -> JsonResponse:
    return JsonResponse({'error': message}, status=status)


def _error_response(error: FileOperationError) -> JsonResponse:
    """Map a service failure to an HTTP response.

    Args:
        error: Failure value returned by the service.

    Returns:
        JSON error response.
    """
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
                return _error(_GENERIC_SERVER_ERROR, status)
            return _error(error.message, status)
    return _error(_GENERIC_SERVER_ERROR, HTTPStatus.INTERNAL_SERVER_ERROR)


def _respond(
    result: Result[Any, FileOperationError],
    on_success: Callable[[Any], HttpResponse],
) -> HttpResponse:
    if not is_successful(result):
        return _error_response(result.failure())
    return on_success(result.unwrap())


def api_login_required(view: _ViewFunc) -> _ViewFunc:
    """Reject anonymous requests with 401 instead of a login redirect.

    Args:
        view: View function to protect.

    Returns:
        Wrapped view.
    """
    @wraps(view)
    def wrapper(request: HttpRequest, *args: Any, **kwargs: Any) -> HttpResponse:
        if not request.user.is_authenticated:
            return _error(
                'Authentication required',
                HTTPStatus.UNAUTHORIZED,
            )
        return view(request, *args, **kwargs)
    return wrapper


def _identity(request: HttpRequest) -> Identity:
    return Identity.from_user(request.user)


def _record_json(status: int = HTTPStatus.OK) -> Callable[[Any], HttpResponse]:
    return lambda record: JsonResponse(record.to_dict(), status=status)


def _check_upload(uploaded: UploadedFile | None) -> JsonResponse | None:
    # Size is known from the multipart headers, so oversized bodies are
    # rejected before their bytes are read into memory
    if uploaded is None:
        return _error('No file uploaded', HTTPStatus.BAD_REQUEST)
    max_bytes = settings.FILE_MAX_UPLOAD_BYTES
    if uploaded.size is not None and uploaded.size > max_bytes:
        logger.warning(
            'Upload rejected, %d bytes over the %d byte limit: %s',
            uploaded.size,
            max_bytes,
            uploaded.name,
        )
        return _error(
            f'File exceeds the maximum size of {max_bytes} bytes',
            HTTPStatus.BAD_REQUEST,
        )
    return None


@require_POST
@api_login_required
def upload_file(request: HttpRequest) -> HttpResponse:
    """Upload a new file from the multipart ``file`` field."""
    uploaded = request.FILES.get(_UPLOAD_FIELD)
    rejection = _check_upload(uploaded)
    if rejection is not None:
        return rejection

    result = get_file_service().upload(
        uploaded.read(),
        uploaded.name or '',
        _identity(request),
    )
    return _respond(result, _record_json(HTTPStatus.CREATED))


@require_POST
@api_login_required
def replace_file(request: HttpRequest, file_id: int) -> HttpResponse:
    """Replace a file's content and name from the multipart ``file`` field."""
    uploaded = request.FILES.get(_UPLOAD_FIELD)
    rejection = _check_upload(uploaded)
    if rejection is not None:
        return rejection

    result = get_file_service().replace(
        file_id,
        uploaded.read(),
        uploaded.name or '',
        _identity(request),
    )
    return _respond(result, _record_json())


@require_GET
@api_login_required
def download_file(request: HttpRequest, file_id: int) -> HttpResponse:
    """Return raw file bytes with a content type derived from the extension."""
    def build_response(fetched: Any) -> HttpResponse:
        record, content = fetched
        response = HttpResponse(
            content,
            content_type=detect_content_type(record.extension),
        )
        response['Content-Disposition'] = content_disposition_header(
            as_attachment=True,
            filename=record.name,
        )
        return response

    return _respond(get_file_service().fetch(file_id), build_response)


@require_http_methods(['GET', 'DELETE'])
@api_login_required
def file_detail(request: HttpRequest, file_id: int) -> HttpResponse:
    """Return file metadata (GET) or delete the file (DELETE).

    Only the owner may delete a file.
    """
    service = get_file_service()
    metadata = service.get_metadata(file_id)
    if request.method == 'GET' or not is_successful(metadata):
        return _respond(metadata, _record_json())

    identity = _identity(request)
    if metadata.unwrap().owner_id != identity.user_id:
        logger.warning(
            'User %d attempted to delete file %d owned by someone else',
            identity.user_id,
            file_id,
        )
        return _error('Only the owner can delete this file', HTTPStatus.FORBIDDEN)

    return _respond(
        service.delete(file_id),
        lambda _: JsonResponse({'message': 'File deleted successfully'}),
    )


@require_GET
@api_login_required
def list_files(request: HttpRequest) -> HttpResponse:
    """List files, optionally sorted by extension and filtered by type.

    Query parameters: ``ascending=true|false`` and repeated ``types``.
    """
    ascending_param = request.GET.get('ascending')
    if ascending_param is None or ascending_param == '':
        ascending = None
    elif ascending_param.lower() in {'true', '1'}:
        ascending = True
    elif ascending_param.lower() in {'false', '0'}:
        ascending = False
    else:
        return _error(
            'ascending must be true or false',
            HTTPStatus.BAD_REQUEST,
        )

    records = sort_and_filter(
        DjangoMetadataRepository(),
        ascending=ascending,
        types=request.GET.getlist('types'),
    )
    return JsonResponse([record.to_dict() for record in records], safe=False)


@require_POST
@api_login_required
def sync_compare(request: HttpRequest) -> HttpResponse:
    """Compare the caller's local file names with their stored files.

    Body: ``{"local_files": ["a.kt", ...]}``.
    """
    try:
        payload = json.loads(request.body or b'{}')
    except json.JSONDecodeError:
        return _error('Request body must be JSON', HTTPStatus.BAD_REQUEST)

    local_files = payload.get('local_files') if isinstance(payload, dict) else None
    if not isinstance(local_files, list) or not all(
        isinstance(name, str) for name in local_files
    ):
        return _error(
            'local_files must be a list of names',
            HTTPStatus.BAD_REQUEST,
        )

    plan = compare(
        DjangoMetadataRepository(),
        _identity(request).user_id,
        local_files,
    )
    return JsonResponse({
        'to_upload': sorted(plan.to_upload),
        'to_download': sorted(plan.to_download),
    })


@require_GET
@api_login_required
def remote_files(request: HttpRequest) -> HttpResponse:
    """List the caller's own stored files."""
    records = list_for_owner(
        DjangoMetadataRepository(),
        _identity(request).user_id,
    )
    return JsonResponse([record.to_dict() for record in records], safe=False)
