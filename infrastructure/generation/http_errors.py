"""Translate HTTP failures of generation backends into domain errors."""
from __future__ import annotations

import requests

from domain.errors import GenerationFailed, GenerationFailureKind

_STATUS_KINDS: dict[int, GenerationFailureKind] = {
    401: GenerationFailureKind.PERMISSION_DENIED,
    403: GenerationFailureKind.PERMISSION_DENIED,
    404: GenerationFailureKind.MODEL_NOT_FOUND,
    429: GenerationFailureKind.QUOTA_EXCEEDED,
}


def failure_kind_for_status(status_code: int | None) -> GenerationFailureKind:
    if status_code is None:
        return GenerationFailureKind.UNKNOWN
    return _STATUS_KINDS.get(status_code, GenerationFailureKind.UNKNOWN)


def generation_error(exc: requests.RequestException) -> GenerationFailed:
    response = exc.response
    status_code = response.status_code if response is not None else None
    detail = _error_detail(response) if response is not None else str(exc)
    return GenerationFailed(failure_kind_for_status(status_code), detail)


def _error_detail(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return f"HTTP {response.status_code}"
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return f"HTTP {response.status_code}: {error['message']}"
        if isinstance(error, str):
            return f"HTTP {response.status_code}: {error}"
    return f"HTTP {response.status_code}"


__all__ = ["failure_kind_for_status", "generation_error"]
