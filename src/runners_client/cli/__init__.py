"""Command-line interface for runners-client."""

__all__: list[str] = []
