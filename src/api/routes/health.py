"""
Health check API route
"""

from datetime import datetime
from fastapi import APIRouter

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check"""
    return {
        "success": True,
        "status": "healthy",
        "database": "PostgreSQL",
        "timestamp": datetime.utcnow().isoformat() + "Z"
    }
