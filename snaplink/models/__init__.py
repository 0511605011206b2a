"""SQLAlchemy models.

All models should be imported here for Alembic to detect them.
"""

from snaplink.core.database import Base
from snaplink.models.link import Link

__all__ = ["Base", "Link"]
