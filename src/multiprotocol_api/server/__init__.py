"""FastAPI server adapter for the multi-protocol API.

Design intent:
- Keep operation logic in `multiprotocol_api.operations.*`
- Keep room state and broadcast in `multiprotocol_api.rooms.*`
- Keep protocol concerns (routing, envelopes, CORS, error rendering) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from multiprotocol_api.server.app import create_app
