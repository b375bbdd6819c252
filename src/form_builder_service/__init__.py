"""
Internal library package for form-builder-service.

This package holds the service implementation (API, storage, integrations, DSPy programs).

- Runtime package: `src/form_builder_service/`
- Vercel entrypoint: `api/index.py`
"""
