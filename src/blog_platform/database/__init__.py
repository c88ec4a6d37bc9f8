"""
# Database Package

The `blog_platform.database` package provides the persistence layer, built on **Motor**
(the async MongoDB driver).

The `db_manager` instance is a **module-level singleton** so a single connection pool is
shared by the whole application. It is created at import time without I/O and connected
during application startup:

```python
from blog_platform.database import db_manager

await db_manager.connect()
blogs = db_manager.get_collection("blogs")
await db_manager.disconnect()
```

Attributes:
    db_manager (DatabaseManager): The global singleton instance for database access.
    DatabaseManager (class): The manager class (exported for type hinting).
"""

from blog_platform.database.manager import BLOGS_COLLECTION, USERS_COLLECTION, DatabaseManager, db_manager

__all__ = ["BLOGS_COLLECTION", "USERS_COLLECTION", "DatabaseManager", "db_manager"]
