"""
V1 API router - aggregates all v1 endpoints.
"""
from fastapi import APIRouter
from cardano_token_api.api.v1.endpoints import tokens, jobs

api_router = APIRouter()

# Include all v1 endpoints
api_router.include_router(tokens.router, tags=["Tokens"])
api_router.include_router(jobs.router, tags=["Jobs"])
