import logging

from rest_framework import serializers, status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

from inventario.store.rules import StoreError

logger = logging.getLogger(__name__)


def first_error_message(detail):
    """Pick the first human readable message out of a DRF error structure"""
    if isinstance(detail, dict):
        for value in detail.values():
            message = first_error_message(value)
            if message:
                return message
        return None
    if isinstance(detail, (list, tuple)):
        for value in detail:
            message = first_error_message(value)
            if message:
                return message
        return None
    return str(detail) if detail is not None else None


def as_validation_error(exc: StoreError):
    """Translate a store rule violation into a DRF ValidationError"""
    return serializers.ValidationError(exc.as_dict())


def api_exception_handler(exc, context):
    """
    DRF exception handler: every error body carries a ``message`` string.
    Validation failures keep their field errors under ``errors``.
    """
    if isinstance(exc, StoreError):
        exc = as_validation_error(exc)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = {
            'message': first_error_message(response.data) or 'Dados inválidos.',
            'errors': response.data,
        }
    elif isinstance(response.data, dict) and 'message' not in response.data:
        response.data['message'] = first_error_message(response.data.get('detail', response.data))

    request = context.get('request')
    message = response.data.get('message') if isinstance(response.data, dict) else response.data
    logger.warning(f"{type(exc).__name__} on {getattr(request, 'path', '?')}: {message}")
    return response


def validation_error_response(errors, status_code=status.HTTP_400_BAD_REQUEST):
    """Response for serializer errors returned directly from a view"""
    return Response({
        'message': first_error_message(errors) or 'Dados inválidos.',
        'errors': errors,
    }, status=status_code)
