"""
Snippetbox - Schemas
=====================

What:  Pydantic models describing what clients submit (HTML forms).
Why:   Kept apart from the ORM models: forms carry validation messages and
       never map one-to-one onto table rows (passwords arrive in plaintext,
       are stored hashed).
"""
