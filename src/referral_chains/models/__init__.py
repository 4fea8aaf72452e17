from referral_chains.models.chain_models import (
    Chain,
    ErrorDetail,
    MediaRecord,
    QueryResult,
    QueryStatus,
)

__all__ = [
    "Chain",
    "ErrorDetail",
    "MediaRecord",
    "QueryResult",
    "QueryStatus",
]
