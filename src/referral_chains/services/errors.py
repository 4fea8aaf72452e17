"""
# Query Errors

Error taxonomy for the chain federation engine and the decorator that turns it into
classified `QueryResult` objects.

| Error | Classification | Meaning |
|---|---|---|
| `ConfigurationError` | internal_error | malformed chain identifier in the registry |
| `RegistryUnavailable` | internal_error | chain registry could not be read |
| `NoChainsFound` | not_found | registry holds no chains |
| `NotFound` | not_found | legitimate empty result |
| `MissingSearchField` | bad_request | caller omitted the search term |
| `RootNodeMissing` | internal_error | a chain's declared root node is absent |
| `RootNodeIncomplete` | internal_error | a chain's root node has no `totalMembers` |

Not-found conditions are logged at info level and never as errors. Every other failure,
including raw `PyMongoError`s raised while a plan executes, is logged with its traceback and
reported to the caller only by class name and a generic message.
"""

from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

from referral_chains.managers.logging_manager import get_logger
from referral_chains.models.chain_models import ErrorDetail, QueryResult, QueryStatus

logger = get_logger(prefix="[QueryErrors]")

INTERNAL_ERROR_MESSAGE = "Something Went Wrong"

F = TypeVar("F", bound=Callable[..., Awaitable[QueryResult]])


class ChainQueryError(Exception):
    """Base class for every error the federation engine raises on purpose."""

    status: QueryStatus = QueryStatus.INTERNAL_ERROR
    default_message: str = INTERNAL_ERROR_MESSAGE

    def __init__(self, message: str = ""):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ConfigurationError(ChainQueryError):
    default_message = "Chain registry contains a malformed chain name"


class RegistryUnavailable(ChainQueryError):
    default_message = "Chain registry unavailable"


class NotFound(ChainQueryError):
    status = QueryStatus.NOT_FOUND
    default_message = "Not found"


class NoChainsFound(NotFound):
    default_message = "Chains not found"


class MissingSearchField(ChainQueryError):
    status = QueryStatus.BAD_REQUEST
    default_message = "SearchField required"


class RootNodeMissing(ChainQueryError):
    default_message = "Chain root node missing"

    def __init__(self, chain_name: str):
        super().__init__(f"Root node missing for chain '{chain_name}'")
        self.chain_name = chain_name


class RootNodeIncomplete(ChainQueryError):
    default_message = "Chain root node has no member count"

    def __init__(self, chain_name: str):
        super().__init__(f"Root node for chain '{chain_name}' has no totalMembers")
        self.chain_name = chain_name


def error_to_result(error: Exception) -> QueryResult:
    """Classify an exception into a `QueryResult` without leaking store internals."""
    if isinstance(error, ChainQueryError):
        if error.status == QueryStatus.INTERNAL_ERROR:
            return QueryResult(
                message=INTERNAL_ERROR_MESSAGE,
                status=error.status,
                error=ErrorDetail(kind=type(error).__name__, message=error.message),
            )
        return QueryResult(message=error.message, status=error.status)

    return QueryResult(
        message=INTERNAL_ERROR_MESSAGE,
        status=QueryStatus.INTERNAL_ERROR,
        error=ErrorDetail(kind=type(error).__name__, message=INTERNAL_ERROR_MESSAGE),
    )


def capture_query_errors(operation: str) -> Callable[[F], F]:
    """
    Decorate an async executor so every failure comes back as a classified `QueryResult`.

    Args:
        operation: Name used in log lines (e.g. `"search_nodes"`).
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> QueryResult:
            try:
                return await func(*args, **kwargs)
            except ChainQueryError as e:
                if e.status == QueryStatus.INTERNAL_ERROR:
                    logger.error("%s failed: %s: %s", operation, type(e).__name__, e.message, exc_info=True)
                else:
                    logger.info("%s: %s", operation, e.message)
                return error_to_result(e)
            except Exception as e:
                logger.error("%s failed with unexpected error: %s", operation, e, exc_info=True)
                return error_to_result(e)

        return wrapper  # type: ignore[return-value]

    return decorator
