"""
Microsoft To Do (Graph API) remote store.
"""

from .client import TodoApiClient, GRAPH_BASE_URL

__all__ = ['TodoApiClient', 'GRAPH_BASE_URL']
