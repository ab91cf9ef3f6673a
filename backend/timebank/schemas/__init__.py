# Schemas package init
"""
TimeBank Backend — API Schemas
==============================

Pydantic models describing request bodies and JSON responses. They are kept
separate from the ORM models so that internal columns (password_hash) can
never be serialized by accident.
"""
