"""
Backend package for TeacherConnect.

This package provides a FastAPI application over a storage service that can
run against a Postgres database or a local key/value store.
"""

