"""Shared utilities for mx-login."""
