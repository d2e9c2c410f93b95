import functools
import json
import logging
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.db.models import ProtectedError
from django.http import JsonResponse
from ..exceptions import FinanceError, RequestValidationError
from ..forms import snake_keys

logger = logging.getLogger(__name__)


def error_response(error, message=None, status=400, details=None):
    body = {"error": error}
    if message:
        body["message"] = message
    if details:
        body["details"] = details
    return JsonResponse(body, status=status)


def _validation_messages(exc):
    if hasattr(exc, "message_dict"):
        return exc.message_dict
    return {"__all__": exc.messages}


def json_errors(failure_message):
    """
    Top-level error handling for API views.

    Finance errors answer with their own status and label, model rule
    violations with 400 and anything else with 500 and ``failure_message``.
    Runs outside any atomic block so failed writes are already rolled back.
    """

    def decorator(view):
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            try:
                return view(request, *args, **kwargs)
            except FinanceError as exc:
                log = logger.error if exc.status_code >= 500 else logger.warning
                log("%s %s: %s", request.method, request.path, exc.message)
                return JsonResponse(exc.as_dict(), status=exc.status_code)
            except ValidationError as exc:
                logger.warning("%s %s rejected: %s", request.method, request.path, exc.messages)
                return error_response(
                    "Validation error",
                    "; ".join(exc.messages),
                    details=_validation_messages(exc),
                )
            except ProtectedError as exc:
                logger.warning("%s %s blocked by protected rows", request.method, request.path)
                return error_response("Record is in use", str(exc.args[0]))
            except DatabaseError as exc:
                logger.exception("Database error on %s %s", request.method, request.path)
                return error_response(failure_message, str(exc), status=500)
            except Exception as exc:
                logger.exception("Unexpected error on %s %s", request.method, request.path)
                return error_response(failure_message, str(exc), status=500)

        return wrapper

    return decorator


def read_json(request) -> dict:
    """Decoded request body with snake_case keys"""
    if not request.body:
        return {}
    try:
        payload = json.loads(request.body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise RequestValidationError("Request body must be valid JSON")
    if not isinstance(payload, dict):
        raise RequestValidationError("Request body must be a JSON object")
    return snake_keys(payload)


def query_params(request) -> dict:
    return snake_keys({key: value for key, value in request.GET.items() if value != ""})


def validated(form_class, data, message="Missing or invalid fields"):
    form = form_class(data)
    if not form.is_valid():
        raise RequestValidationError(message, details=form.errors.get_json_data())
    return form


def acting_user(request):
    user = getattr(request, "user", None)
    return user if user is not None and user.is_authenticated else None
