"""
API Layer for the development identity server.

This package provides the FastAPI app that implements the identity wire
contract used by the capture client:
- POST /api/register, POST /api/verify
- GET /api/users, DELETE /api/delete/{name}
- GET /health
"""
