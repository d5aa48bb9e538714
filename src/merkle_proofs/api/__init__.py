"""
REST API Package

This package exposes the tree service over HTTP.

Usage:
    from merkle_proofs.api import create_app

    app = create_app()
"""

from .rest_api import create_app, run_server

__all__ = [
    'create_app',
    'run_server',
]
