"""
Rendering Module
===============

PDF export of live pages with browser automation.

Components:
- engine: Shared Playwright browser, lazily launched and reused across requests
"""
