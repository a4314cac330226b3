"""Error taxonomy of the match engine.

Every error is a DRF ``APIException`` so the engine can raise it directly and
the API layer renders it with the right status code.  ``retryable`` tells
callers whether repeating the whole operation can succeed.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


class MatchEngineError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Match engine error.'
    default_code = 'match_engine_error'
    retryable = False


class NotFound(MatchEngineError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class PermissionDenied(MatchEngineError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not allowed to perform this action.'
    default_code = 'permission_denied'


class ValidationFailed(MatchEngineError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'validation_failed'


class TransientStoreFailure(MatchEngineError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Storage is temporarily unavailable, please retry.'
    default_code = 'transient_store_failure'
    retryable = True


class OracleUnavailable(MatchEngineError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'The compatibility service is unavailable, please retry.'
    default_code = 'oracle_unavailable'
    retryable = True
