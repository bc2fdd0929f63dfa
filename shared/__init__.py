"""Shared utilities package for the Field Inspection application.

This package contains the data model used by the BeeWare frontend and by
anything that reads the records it writes to the remote database:

- Enums (enums.py) - Question types, choice tokens and answer fields
- Schemas (schemas.py) - Pydantic models for forms, answers and submissions
- Utility functions (utils.py) - Key sanitizing, submission paths, image checks
"""
