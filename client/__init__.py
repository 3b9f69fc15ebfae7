"""One-shot API client – HTTP boundary plus debate and branch endpoints."""

from client.branch_api import BranchApi
from client.debate_api import DebateApi
from client.http_client import REQUEST_ID_HEADER, HttpClient

__all__ = [
    "BranchApi",
    "DebateApi",
    "HttpClient",
    "REQUEST_ID_HEADER",
]
