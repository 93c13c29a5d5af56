"""
Root route listing the API's capabilities
"""

from fastapi import APIRouter

from config.settings import API_VERSION

router = APIRouter()


@router.get("/")
async def api_info():
    return {
        "success": True,
        "message": "Welcome to User REST API with PostgreSQL",
        "version": API_VERSION,
        "database": "PostgreSQL",
        "endpoints": {
            "users": "/api/users",
            "search": "/api/users/search?q=searchTerm"
        },
        "documentation": {
            "GET /api/users": "Get all users",
            "GET /api/users/:id": "Get user by ID",
            "GET /api/users/search?q=term": "Search users by name or email",
            "POST /api/users": "Create new user (requires: name, email, age)",
            "PUT /api/users/:id": "Update user (requires: name, email, age)",
            "PATCH /api/users/:id": "Partial update user (optional: name, email, age)",
            "DELETE /api/users/:id": "Delete user"
        }
    }
