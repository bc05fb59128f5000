"""
Page PDF Render Cache
=====================

A FastAPI service that renders locally served pages to PDF with a shared
headless browser and caches the artifacts on disk.

This package provides:
- FastAPI endpoint for render and cache-clear requests
- Browser automation with Playwright
- Artifact directory and JSON cache index management
"""

__version__ = "1.0.0"
__author__ = "Page PDF Team"
