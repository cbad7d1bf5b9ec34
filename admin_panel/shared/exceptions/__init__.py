"""
Shared exceptions for the admin panel.

Defines typed failures of the store adapter, local validation errors and
the HTTP-facing exception classes.
"""

from .store_exceptions import (
    AdminPanelError,
    FetchError,
    WriteError,
    RecordNotFoundError,
    DismissError,
    SubscriptionError,
    ValidationError,
)
from .custom_exceptions import BaseAPIException, NotFoundException

__all__ = [
    # Store / domain exceptions
    'AdminPanelError',
    'FetchError',
    'WriteError',
    'RecordNotFoundError',
    'DismissError',
    'SubscriptionError',
    'ValidationError',

    # HTTP exceptions
    'BaseAPIException',
    'NotFoundException',
]
