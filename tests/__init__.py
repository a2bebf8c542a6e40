#!/usr/bin/env python3
"""
Test suite for the league push service.

All tests run without external services: Redis is replaced by an in-memory
double and Web Push sends by a recording transport.

    # Run all tests
    uv run python -m pytest tests/ -v

    # Using unittest
    uv run python -m unittest discover tests -v
"""
