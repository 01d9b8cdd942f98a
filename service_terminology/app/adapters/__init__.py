"""
Adapters package for the Terminology Service.

Contains the HTTP gateway to the remote terminology server. The gateway
encapsulates:

- Base URL resolution and request shapes
- Session cookies and language negotiation
- The single retry after a forced session refresh

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .terminology_gateway import TerminologyGateway, session_expired

__all__ = [
    "TerminologyGateway",
    "session_expired",
]
