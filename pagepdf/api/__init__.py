"""
FastAPI REST Endpoints
======================

HTTP access to the render cache.

Endpoints:
- GET /api/pdf: Render a target page to PDF (served from cache when possible)
- DELETE /api/pdf: Clear all cached artifacts and the index
- GET /pdfS/{file}: Stored artifacts (static)
- GET /health: Health check endpoint
"""
