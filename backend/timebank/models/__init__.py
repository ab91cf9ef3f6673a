# Models package init
"""
TimeBank Backend — ORM Models
=============================

Importing this package registers every table with `Base.metadata`
(used by Alembic autogenerate and by the test suite's create_all).
"""

from timebank.models.contact_message import ContactMessage
from timebank.models.learning_resource import LearningResource
from timebank.models.service import Service
from timebank.models.user import User

__all__ = ["ContactMessage", "LearningResource", "Service", "User"]
