"""Ingestion layer.

Pure translation of backend payloads into the state store's canonical types.
"""

__all__: list[str] = []
