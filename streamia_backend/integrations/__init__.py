"""
External system integrations (Pexels).

New external clients should live under this namespace so they remain
decoupled from app entrypoints (`api/`).
"""
