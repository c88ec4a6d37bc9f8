"""
# Blog Platform

REST backend for a blog publishing platform, built on **FastAPI** and **MongoDB**
(via Motor).

## Package Layout

```
blog_platform/
├── config.py        settings (pydantic-settings, .env discovery)
├── main.py          FastAPI app, lifespan, error envelope handlers
├── database/        Motor connection manager and index creation
├── managers/        repository (writes), query service (reads), logging
├── models/          pydantic document, request and response models
├── routes/          blog router and authentication dependencies
├── services/        derived fields, query builder, image host client
└── utils/           domain errors, response envelope, ObjectId parsing
```

Readers list, read and search published posts; authenticated users write, publish,
like and comment on them. User accounts and token issuing belong to a separate service.
"""

__version__ = "1.0.0"
