"""Business logic layer for files app.

This package contains all business logic for file operations:
- File upload, replace, fetch, delete (content + metadata kept consistent)
- Sorted and type-filtered listings
- Name-based sync reconciliation and folder sync

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).

Reference: https://github.com/dry-python
for decoupling business logic from Django views.
"""
