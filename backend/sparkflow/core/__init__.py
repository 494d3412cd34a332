"""
SparkPro Studio Workflow - Core Package
=======================================

Core business logic, models, and schemas.
"""

from sparkflow.core.config import settings
from sparkflow.core.database import Base, get_db

__all__ = ["Base", "get_db", "settings"]
