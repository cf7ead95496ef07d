# backend/squirrel/__init__.py
"""
squirrel: stock ledger service.

The actual model classes are kept in squirrel/apps/*/models.py.
"""
