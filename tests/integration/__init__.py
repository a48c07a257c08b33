"""
HTTP test package for the Task Manager API.

Tests use the Flask test client and cover:
- CRUD operation testing
- Input validation testing
- Authentication and error-status mapping
"""
