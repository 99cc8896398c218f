"""runners-client: authenticated API client for the Runners community backend.

Entry points:
    runners_client.context.open_client_context  wire everything from a ClientConfig
    runners_client.http.client.AuthenticatedClient  bearer auth with refresh-on-401
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
