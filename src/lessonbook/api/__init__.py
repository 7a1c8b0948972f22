"""REST API for lessonbook."""

from lessonbook.api.app import create_app
from lessonbook.api.models import (
    APIResponse,
    RegistrationCreate,
    RegistrationResponse,
    RegistrationUpdate,
)

__all__ = [
    "APIResponse",
    "RegistrationCreate",
    "RegistrationResponse",
    "RegistrationUpdate",
    "create_app",
]
