"""
Data Models
===========

Pydantic models for API responses and internal result descriptors.
"""
