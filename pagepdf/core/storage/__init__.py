"""
Storage Module
==============

On-disk state of the render cache.

Components:
- artifacts: Directory of rendered PDF files
- index: JSON document mapping canonical target URLs to artifact filenames
"""
