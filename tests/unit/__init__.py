"""Unit tests that exercise application code without the HTTP layer."""
