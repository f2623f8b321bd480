"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)
"""

from reapi.models.document import StoredDocument  # noqa: F401
