"""Provisioning, milestone reconciliation and issue cloning.

- Settings loaded from .env
- Structured logging
- A small CLI surface
- The clone service used by both the CLI and the REST server
"""
