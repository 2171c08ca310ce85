"""
Storage Package.

This package manages all data persistence.

Modules:
- models/: ORM models (recap cache, scored records, archives)
- repositories/: Data access layer
"""
