"""Dashboard API access: HTTP client, error types and paged collection"""

from .client import FiberDashboardClient
from .errors import FiberApiError, TransportError, ResponseValidationError, ApplicationError
from .pagination import (
    CollectionResult,
    CursorPagination,
    HeuristicPagination,
    collect_all,
    make_strategy,
)

__all__ = [
    'FiberDashboardClient',
    'FiberApiError',
    'TransportError',
    'ResponseValidationError',
    'ApplicationError',
    'CollectionResult',
    'CursorPagination',
    'HeuristicPagination',
    'collect_all',
    'make_strategy',
]
