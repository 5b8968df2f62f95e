"""
Model registry.

Importing this module registers every table on `Base.metadata`.
"""

from portal.apps.auth.models import Role, User  # noqa: F401
from portal.apps.content.models import Document, Post, ReviewComment  # noqa: F401
from portal.apps.departments.models import Department  # noqa: F401
