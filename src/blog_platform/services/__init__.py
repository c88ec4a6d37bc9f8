"""
# Services Package

Stateless building blocks used by the managers:

- `blog_fields`: slug, reading time, `publishedAt` and list normalization.
- `blog_query_builder`: `BlogQuery` and the aggregation pipelines it renders.
- `image_upload_service`: Cloudinary client for featured images.
"""
