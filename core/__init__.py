"""
Core - Shared Infrastructure for the Workforce Backend

This package provides the pieces every resource app builds on:
- Base models with UUID, timestamps, soft delete and version counters
- Soft-delete aware managers
- The typed error taxonomy raised by services
- The access decision engine and its rule table
- The injected blob store client
"""
