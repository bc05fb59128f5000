"""
Core Business Logic
==================

Core business logic modules for page rendering and artifact caching.

Modules:
- rendering: Shared headless browser and PDF export
- storage: Artifact directory and cache index persistence
- coordinator: Request orchestration (validate, look up, render, record)
"""
