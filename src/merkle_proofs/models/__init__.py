"""
API Models Package

This package contains request and response models for the tree API.

Usage:
    from merkle_proofs.models import BuildRequest, ProofResponse

    request = BuildRequest(hashes=["ab" * 32])
"""

from .api_models import (
    AppendRequest,
    BuildRequest,
    ErrorResponse,
    HealthResponse,
    ProofResponse,
    RawAppendRequest,
    RawBuildRequest,
    RootResponse,
    StatelessVerifyRequest,
    TreeResponse,
    VerifyRequest,
    VerifyResponse,
)

__all__ = [
    'AppendRequest',
    'BuildRequest',
    'ErrorResponse',
    'HealthResponse',
    'ProofResponse',
    'RawAppendRequest',
    'RawBuildRequest',
    'RootResponse',
    'StatelessVerifyRequest',
    'TreeResponse',
    'VerifyRequest',
    'VerifyResponse',
]
