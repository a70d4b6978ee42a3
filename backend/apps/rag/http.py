"""
Shared helpers for JSON views: body parsing, schema validation and
translation of classified pipeline errors into responses.
"""
import functools
import json
import logging

from django.http import JsonResponse

from apps.rag.errors import RagError, ValidationError

logger = logging.getLogger(__name__)


def parse_json(request) -> dict:
    """
    Decode a JSON object body.

    Raises:
        ValidationError: If the body is not a JSON object
    """
    try:
        body = json.loads(request.body or b"{}")
    except json.JSONDecodeError:
        raise ValidationError("Invalid JSON")
    if not isinstance(body, dict):
        raise ValidationError("JSON body must be an object")
    return body


def validate(serializer_class, data: dict) -> dict:
    """Run a request serializer, raising ValidationError with its errors."""
    serializer = serializer_class(data=data)
    if not serializer.is_valid():
        raise ValidationError("Invalid request", detail=serializer.errors)
    return serializer.validated_data


def error_response(error: RagError) -> JsonResponse:
    return JsonResponse(error.to_dict(), status=error.http_status)


def json_errors(view_func):
    """
    Turn exceptions raised by a view into JSON error responses.

    Classified errors keep their status and detail; anything else is a 500.
    """
    @functools.wraps(view_func)
    def wrapper(*args, **kwargs):
        try:
            return view_func(*args, **kwargs)
        except RagError as e:
            if e.http_status >= 500:
                logger.error(f"{view_func.__name__} failed ({e.kind}): {e.message}")
            else:
                logger.info(f"{view_func.__name__} rejected ({e.kind}): {e.message}")
            return error_response(e)
        except Exception:
            logger.exception(f"Unexpected error in {view_func.__name__}")
            return JsonResponse({"error": "Internal error", "kind": "internal"}, status=500)
    return wrapper
