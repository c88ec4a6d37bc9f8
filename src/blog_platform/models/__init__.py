"""
# Data Models Package

Pydantic models for the blog platform:

- **Documents**: `BlogDocument`, `CommentDocument` (the stored shape, camelCase keys).
- **Requests**: `CreateBlogRequest`, `UpdateBlogRequest`, `CreateCommentRequest`.
- **Responses**: `PaginatedBlogs`, `ApiResponse`, `ApiErrorResponse`.
"""
