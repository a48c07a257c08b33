"""
Test suite for the Task Manager API.

This package contains:
- unit/: models, enum parsing, payload decoding, repository queries,
  services and JWT helpers
- integration/: HTTP tests through the Flask test client
"""
