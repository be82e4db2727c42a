"""
V1 API router aggregator — wires all endpoint modules together.
"""

from fastapi import APIRouter

from karma_api.api.v1.endpoints import auth, health, users

api_router = APIRouter()

# Login
api_router.include_router(auth.router)

# Registration, profiles, admin updates, voting
api_router.include_router(users.router)

# Liveness
api_router.include_router(health.router)
