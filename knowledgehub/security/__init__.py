"""Security modules for KnowledgeHub."""

from knowledgehub.security.headers import SecurityHeadersMiddleware
from knowledgehub.security.logging import RequestLogMiddleware

__all__ = [
    "SecurityHeadersMiddleware",
    "RequestLogMiddleware",
]
