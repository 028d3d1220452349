"""API routes."""
from fastapi import APIRouter
from melodee.api import staging, quarantine

api_router = APIRouter()

api_router.include_router(staging.router, tags=["staging"])
api_router.include_router(quarantine.router, tags=["quarantine"])
