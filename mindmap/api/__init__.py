"""
API Layer

HTTP document service and the matching DocumentStore client.
"""

from .client import HttpDocumentStore
from .server import create_app

__all__ = ['HttpDocumentStore', 'create_app']
