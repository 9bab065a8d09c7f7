"""Local Library - catalog application package

This package contains:
- Entity store (database.py)
- Catalog records and derived values (models.py)
- Form validation and sanitization (validators.py)
- Read composition for views (composer.py)
- Per-entity workflows (services/)
- HTTP endpoints (api.py)
"""

__version__ = "1.0.0"
