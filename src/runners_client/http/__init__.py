"""HTTP layer.

- client: AuthenticatedClient (bearer auth, refresh-on-401, single retry)
- errors: backend error body parsing
"""

__all__: list[str] = []
