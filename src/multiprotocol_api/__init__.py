"""Multi-Protocol API.

One set of schema-validated operations (create task, list tasks, run analysis)
served over:
- REST
- a generic `{method, params}` RPC endpoint
- an MCP-style tool listing and execution endpoint
- an OpenAPI 3.1 document derived from the same models

plus WebSocket broadcast rooms addressed by room key.
"""

__version__ = "1.0.0"

from multiprotocol_api.config import ServerSettings

__all__ = ["__version__", "ServerSettings"]
