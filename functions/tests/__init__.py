"""
Test Suite for the Quality Workflow Functions

This package contains tests organized by category:
- unit/: Unit tests for the qc_core engine, models and storage
- integration/: HTTP function tests against the in-memory repository
- conftest.py: Shared pytest fixtures and configuration
"""
