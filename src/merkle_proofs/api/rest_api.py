"""
REST API for Merkle Proofs

This module provides a FastAPI-based REST API over a single in-memory
tree: build it, append leaves, fetch proofs and verify them, with full
OpenAPI documentation.
"""

import logging
import traceback
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import get_settings
from ..errors import EmptyInput, IndexOutOfRange, InvalidDigest, MerkleTreeError, NoTreeBuilt
from ..models.api_models import (
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
from ..service import TreeService, TreeSnapshot
from ..tree import MerkleTree
from ..utils.hex_helpers import hex_to_digest, hexes_to_digests, normalize_hex

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# Error type -> (HTTP status, error code)
ERROR_STATUS = {
    InvalidDigest: (400, "INVALID_DIGEST"),
    EmptyInput: (400, "EMPTY_INPUT"),
    IndexOutOfRange: (400, "INDEX_OUT_OF_RANGE"),
    NoTreeBuilt: (409, "NO_TREE_BUILT"),
}


def _tree_response(snapshot: TreeSnapshot) -> TreeResponse:
    return TreeResponse(
        leaf_count=snapshot.leaf_count,
        depth=snapshot.depth,
        root=snapshot.levels[-1][0] if snapshot.levels else None,
        levels=snapshot.levels,
    )


def _invalid_digest_error(exc: RequestValidationError) -> Optional[str]:
    for error in exc.errors():
        cause = (error.get("ctx") or {}).get("error")
        if isinstance(cause, InvalidDigest):
            return str(cause)
    return None


def create_app(service: Optional[TreeService] = None) -> FastAPI:
    """
    Create the API application around a tree service.

    Args:
        service: Service holding the current tree. If None, a new one is created.

    Returns:
        Configured FastAPI application
    """
    tree_service = service or TreeService()

    app = FastAPI(
        title="Merkle Proofs API",
        description="""
    Build a binary merkle tree over hex digests or raw text, append leaves,
    and generate or verify single-leaf inclusion proofs.

    ## Digests
    All digests are SHA-256 outputs written as 64 hex characters. A `0x`
    prefix and uppercase letters are accepted on input; responses are
    lowercase without prefix.

    ## Odd levels
    When a level has an odd number of nodes, the last node is hashed with
    itself to form its parent.
    """,
        version=API_VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.tree_service = tree_service

    def get_tree_service() -> TreeService:
        """Dependency to get the tree service instance."""
        return app.state.tree_service

    @app.exception_handler(MerkleTreeError)
    async def tree_error_handler(request: Request, exc: MerkleTreeError):
        """Handle tree errors."""
        status_code, code = 500, "TREE_ERROR"
        for error_type, mapped in ERROR_STATUS.items():
            if isinstance(exc, error_type):
                status_code, code = mapped
                break
        logger.error(f"Tree error: {exc}")
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=str(exc),
                code=code,
                details={"error_type": type(exc).__name__}
            ).model_dump()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Report malformed digests like the service does; other body errors stay 422."""
        message = _invalid_digest_error(exc)
        if message is None:
            return await request_validation_exception_handler(request, exc)
        logger.error(f"Tree error: {message}")
        return JSONResponse(
            status_code=400,
            content=ErrorResponse(
                error=message,
                code="INVALID_DIGEST",
                details={"error_type": InvalidDigest.__name__}
            ).model_dump()
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle unexpected errors."""
        logger.error(f"Unexpected error: {exc}\n{traceback.format_exc()}")
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error="Internal server error",
                code="INTERNAL_ERROR",
                details={"error_type": type(exc).__name__}
            ).model_dump()
        )

    @app.get("/", response_model=dict)
    def root():
        """API root endpoint with basic information."""
        return {
            "name": "Merkle Proofs API",
            "version": API_VERSION,
            "description": "Build merkle trees and generate inclusion proofs",
            "docs": "/docs",
            "health": "/health"
        }

    @app.get("/health", response_model=HealthResponse)
    def health_check(service: TreeService = Depends(get_tree_service)):
        """Health check endpoint."""
        return HealthResponse(status="healthy", tree_built=service.has_tree(), version=API_VERSION)

    @app.post("/tree", response_model=TreeResponse)
    def build_tree(request: BuildRequest, service: TreeService = Depends(get_tree_service)):
        """Build a new tree from leaf digests, replacing the current one."""
        return _tree_response(service.build(request.hashes))

    @app.post("/tree/raw", response_model=TreeResponse)
    def build_tree_raw(request: RawBuildRequest, service: TreeService = Depends(get_tree_service)):
        """Build a new tree by hashing each payload into a leaf."""
        return _tree_response(service.build_raw(request.payloads))

    @app.post("/tree/leaves", response_model=TreeResponse)
    def add_leaf(request: AppendRequest, service: TreeService = Depends(get_tree_service)):
        """Append a leaf digest to the current tree."""
        return _tree_response(service.add(request.hash))

    @app.post("/tree/leaves/raw", response_model=TreeResponse)
    def add_leaf_raw(request: RawAppendRequest, service: TreeService = Depends(get_tree_service)):
        """Hash a payload and append it to the current tree."""
        return _tree_response(service.add_raw(request.payload))

    @app.get("/tree", response_model=TreeResponse)
    def get_tree(service: TreeService = Depends(get_tree_service)):
        """Return every level of the current tree."""
        return _tree_response(service.snapshot())

    @app.delete("/tree", response_model=HealthResponse)
    def delete_tree(service: TreeService = Depends(get_tree_service)):
        """Discard the current tree."""
        service.reset()
        return HealthResponse(status="healthy", tree_built=False, version=API_VERSION)

    @app.get("/tree/root", response_model=RootResponse)
    def get_root(service: TreeService = Depends(get_tree_service)):
        """Return the root of the current tree."""
        snapshot = service.snapshot()
        return RootResponse(root=snapshot.root, leaf_count=snapshot.leaf_count)

    @app.get("/tree/proof/{index}", response_model=ProofResponse)
    def get_proof(index: int, service: TreeService = Depends(get_tree_service)):
        """Generate the inclusion proof for the leaf at `index`."""
        result = service.proof_with_context(index)
        return ProofResponse(index=result.index, leaf=result.leaf, proof=result.proof, root=result.root)

    @app.post("/tree/verify", response_model=VerifyResponse)
    def verify_against_tree(request: VerifyRequest, service: TreeService = Depends(get_tree_service)):
        """Verify a proof against the current tree root."""
        verified, root = service.verify_with_root(request.proof, request.leaf, request.index)
        return VerifyResponse(verified=verified, root=root)

    @app.post("/verify", response_model=VerifyResponse)
    def verify_stateless(request: StatelessVerifyRequest):
        """Verify a proof against a caller-supplied root; no tree is needed."""
        verified = MerkleTree.verify(
            hexes_to_digests(request.proof),
            hex_to_digest(request.leaf),
            request.index,
            hex_to_digest(request.root),
        )
        return VerifyResponse(verified=verified, root=normalize_hex(request.root))

    return app


app = create_app()


def run_server(host: Optional[str] = None, port: Optional[int] = None, dev: bool = False):
    """
    Run the API server.

    Args:
        host: Host to bind to (defaults to MERKLE_API_HOST)
        port: Port to bind to (defaults to MERKLE_API_PORT)
        dev: Enable development mode with auto-reload
    """
    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port
    logger.info(f"Starting Merkle Proofs API server on {host}:{port}")
    uvicorn.run(
        "merkle_proofs.api.rest_api:app",
        host=host,
        port=port,
        reload=dev,
        log_level="info"
    )
