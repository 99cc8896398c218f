"""CLI command groups."""

__all__: list[str] = []
