"""
API Models

This module defines Pydantic models for API request and response validation.
Hex digest fields are checked here so malformed input is rejected before
it reaches the tree service.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.hex_helpers import normalize_hex


def _check_digest(v: str) -> str:
    # Raises InvalidDigest, which the API maps to a 400 INVALID_DIGEST response
    return normalize_hex(v)


class ErrorResponse(BaseModel):
    """
    Response model for API errors.

    Attributes:
        error: Error message
        code: Error code (string identifier)
        details: Additional error details
    """
    error: str = Field(..., description="Error message")
    code: str = Field(..., description="Error code")
    details: Optional[dict] = Field(default=None, description="Additional error details")


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""
    status: str = Field(..., description="Service status")
    tree_built: bool = Field(..., description="Whether a tree is currently built")
    version: str = Field(default="0.1.0", description="Service version")
    timestamp: Optional[str] = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat(),
        description="Response timestamp",
    )


class BuildRequest(BaseModel):
    """Request model for building a tree from leaf digests."""
    hashes: List[str] = Field(default_factory=list, description="Leaf digests as hex strings")

    @field_validator('hashes')
    @classmethod
    def validate_hashes(cls, v):
        return [_check_digest(h) for h in v]


class RawBuildRequest(BaseModel):
    """Request model for building a tree from raw text payloads."""
    payloads: List[str] = Field(default_factory=list, description="Raw text payloads, hashed into leaves")


class AppendRequest(BaseModel):
    """Request model for appending a leaf digest."""
    hash: str = Field(..., description="Leaf digest as hex string")

    @field_validator('hash')
    @classmethod
    def validate_hash(cls, v):
        return _check_digest(v)


class RawAppendRequest(BaseModel):
    """Request model for appending a raw text payload."""
    payload: str = Field(..., description="Raw text payload, hashed into a leaf")


class VerifyRequest(BaseModel):
    """
    Request model for verifying a proof against the current tree root.

    Attributes:
        proof: Sibling digests ordered leaf-to-root
        leaf: Digest of the leaf being proven
        index: Claimed index of the leaf
    """
    proof: List[str] = Field(default_factory=list, description="Sibling digests, leaf-to-root")
    leaf: str = Field(..., description="Leaf digest as hex string")
    index: int = Field(..., description="Leaf index")

    @field_validator('proof')
    @classmethod
    def validate_proof_format(cls, v):
        return [_check_digest(step) for step in v]

    @field_validator('leaf')
    @classmethod
    def validate_leaf(cls, v):
        return _check_digest(v)


class StatelessVerifyRequest(VerifyRequest):
    """Request model for verifying a proof against a caller-supplied root."""
    root: str = Field(..., description="Expected root digest as hex string")

    @field_validator('root')
    @classmethod
    def validate_root(cls, v):
        return _check_digest(v)


class TreeResponse(BaseModel):
    """Response model describing the current tree."""
    leaf_count: int = Field(..., description="Number of leaves")
    depth: int = Field(..., description="Number of levels above the leaves")
    root: Optional[str] = Field(default=None, description="Root digest, absent for an empty tree")
    levels: List[List[str]] = Field(default_factory=list, description="Levels from leaves to root")


class RootResponse(BaseModel):
    root: str = Field(..., description="Root digest as hex string")
    leaf_count: int = Field(..., description="Number of leaves")


class ProofResponse(BaseModel):
    """
    Response model for a generated proof.

    Attributes:
        index: Leaf index the proof is for
        leaf: Leaf digest at that index
        proof: Sibling digests ordered leaf-to-root
        root: Root the proof resolves to
    """
    index: int = Field(..., description="Leaf index")
    leaf: str = Field(..., description="Leaf digest as hex string")
    proof: List[str] = Field(..., description="Sibling digests, leaf-to-root")
    root: str = Field(..., description="Root digest as hex string")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "index": 2,
                "leaf": "2e7d2c03a9507ae265ecf5b5356885a53393a2029d241394997265a1a25aefc6",
                "proof": [
                    "2e7d2c03a9507ae265ecf5b5356885a53393a2029d241394997265a1a25aefc6",
                    "e5a01fee14e0ed5c48714f22180f25ad8365b53f9779f79dc4a3d7e93963f94a",
                ],
                "root": "d31a37ef6ac14a2db1470c4316beb5592e6afd4465022339adafda76a18ffabe",
            }
        }
    )


class VerifyResponse(BaseModel):
    verified: bool = Field(..., description="Whether the proof resolves to the root")
    root: str = Field(..., description="Root the proof was checked against")
