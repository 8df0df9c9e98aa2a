"""
JSON error bodies for the loyalty API.

Every failed request answers with the same envelope:

    {"error": {"message": "Insufficient points. Current: 60, Required: 100",
               "code": "INSUFFICIENT_POINTS"}}

Blueprints return ``bad_request(...)`` / ``unauthorized(...)`` for request
problems they detect themselves; service exceptions reach the client
through ``loyalty_error_response`` registered in ``create_app``.
"""
import logging
from enum import Enum
from typing import Union

from flask import jsonify

from .exceptions import LoyaltyError

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Machine-readable codes returned in ``error.code``."""

    # 401
    AUTH_REQUIRED = "AUTH_REQUIRED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"

    # 400
    INVALID_REQUEST = "INVALID_REQUEST"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_AMOUNT = "INVALID_AMOUNT"

    # 404
    NOT_FOUND = "NOT_FOUND"

    # 409
    REWARD_ALREADY_CONSUMED = "REWARD_ALREADY_CONSUMED"
    CONCURRENT_UPDATE = "CONCURRENT_UPDATE"

    # 422
    INSUFFICIENT_POINTS = "INSUFFICIENT_POINTS"

    # 500
    INTERNAL_ERROR = "INTERNAL_ERROR"


def error_response(
    message: str,
    code: Union[ErrorCode, str] = ErrorCode.INTERNAL_ERROR,
    status_code: int = 500,
    log_error: bool = True
) -> tuple:
    """
    Build a (response, status) pair in the shared error envelope.

    Args:
        message: Text safe to show the member
        code: ErrorCode member or the code string carried by a LoyaltyError
        status_code: HTTP status
        log_error: Log 5xx at error level and 4xx at warning level
    """
    code_value = code.value if isinstance(code, ErrorCode) else code

    if log_error:
        level = logging.ERROR if status_code >= 500 else logging.WARNING
        logger.log(level, f"Loyalty API {status_code} [{code_value}]: {message}")

    return jsonify({"error": {"message": message, "code": code_value}}), status_code


def loyalty_error_response(error: LoyaltyError) -> tuple:
    """Response for a service exception; only server-side failures are logged."""
    return error_response(
        error.message,
        error.code,
        error.status_code,
        log_error=error.status_code >= 500
    )


def bad_request(message: str, code: ErrorCode = ErrorCode.INVALID_REQUEST) -> tuple:
    return error_response(message, code, 400, log_error=False)


def unauthorized(message: str = "Caller identity required", code: ErrorCode = ErrorCode.AUTH_REQUIRED) -> tuple:
    return error_response(message, code, 401, log_error=False)


def not_found(message: str, code: ErrorCode = ErrorCode.NOT_FOUND) -> tuple:
    return error_response(message, code, 404, log_error=False)
