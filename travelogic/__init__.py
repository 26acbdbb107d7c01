"""
Travelogic: nearby place search and trip route planning.

Subpackages:
    routing: models, nearest-neighbour sequencing, directions clients,
             route builder and planning session.
    search:  Places text search near a location.
    storage: saved route repositories (in-memory, JSON file).
    spatial: great-circle distance and coordinate validation.
    tools:   YAML profiles, API keys and Google FieldMasks.
"""

__version__ = "0.1.0"
