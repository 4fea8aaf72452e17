"""
# Chain Models

This module defines the **data structures** read by the chain federation engine and the
result envelope returned by the query executors.

## Domain Overview

- **Chain**: One referral tree, registered in the `chains` collection with its seed amount
  and a reference to its root node.
- **Media Record**: The singleton content document.

Stored documents use camelCase keys, which are kept as field aliases so that
`model_dump(by_alias=True)` reproduces the stored shape. Unknown stored fields are preserved.

Node rows (`nodeId`, `totalMembers`, `user`, and `userData` when the user directory is
joined) have no model here. The federated query returns them to the caller as stored, so a
row with an unexpected field type never fails the rest of the result.

## Result Envelope

Executors return a `QueryResult`: a human-readable `message`, a `QueryStatus` classification
and the `data` payload. The HTTP layer maps the classification to a status code.
"""

from enum import Enum
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

STORED_DOCUMENT_CONFIG = ConfigDict(populate_by_name=True, extra="allow", arbitrary_types_allowed=True)


class QueryStatus(str, Enum):
    """Outcome classification of a query execution."""

    OK = "ok"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    INTERNAL_ERROR = "internal_error"


class Chain(BaseModel):
    """
    Registry entry for one referral chain.

    Attributes:
        id: MongoDB document ID (alias: _id).
        name: Chain identifier, unique within the registry.
        seed_amount: Capital contributed per member (alias: seedAmount).
        root_node: Reference to the root node inside the chain's own collection (alias: rootNode).
        investment: Computed `root.totalMembers * seed_amount`, set by the investment aggregator.
    """

    model_config = STORED_DOCUMENT_CONFIG

    id: Optional[Any] = Field(None, alias="_id", description="MongoDB document ID")
    name: str = Field(..., description="Chain identifier")
    seed_amount: Union[int, float] = Field(..., alias="seedAmount", description="Capital per member")
    root_node: Any = Field(..., alias="rootNode", description="Reference to the chain's root node")
    investment: Optional[Union[int, float]] = Field(None, description="Computed invested capital")

    @field_validator("seed_amount")
    @classmethod
    def seed_amount_positive(cls, v: Union[int, float]) -> Union[int, float]:
        if v <= 0:
            raise ValueError("seedAmount must be positive")
        return v


class MediaRecord(BaseModel):
    """The singleton media/content document. Its fields are free-form."""

    model_config = STORED_DOCUMENT_CONFIG

    id: Optional[Any] = Field(None, alias="_id", description="MongoDB document ID")


class ErrorDetail(BaseModel):
    """Diagnostic detail attached to internal errors, safe to show to clients."""

    kind: str = Field(..., description="Error class name")
    message: str = Field(..., description="Client-safe error message")


class QueryResult(BaseModel):
    """Structured result of one query executor."""

    message: str = Field(..., description="Human-readable outcome")
    status: QueryStatus = Field(QueryStatus.OK, description="Outcome classification")
    data: Dict[str, Any] = Field(default_factory=dict, description="Success payload")
    error: Optional[ErrorDetail] = Field(None, description="Present for internal errors")

    @property
    def ok(self) -> bool:
        return self.status == QueryStatus.OK
