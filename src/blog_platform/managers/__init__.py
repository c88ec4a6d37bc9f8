"""
# Managers Package

Stateful components shared across requests, each exposed as a module-level singleton:

- `blog_manager.blog_repository`: every write to the `blogs` collection.
- `blog_query_manager.blog_query_service`: paginated and single-blog reads.
- `logging_manager.get_logger`: prefixed logger factory.
"""
