"""
Trip Track Backend — Pydantic Request/Response Schemas
=======================================================

Schemas are separate from SQLAlchemy models because:
    1. We control exactly what data is exposed (passwords and emails never
       leak through populated relations)
    2. Validation rules (coordinate bounds, enums, lengths) live here and
       produce field-level error messages
    3. Derived values (like_count, comment_count) are serialized without
       being stored
"""
