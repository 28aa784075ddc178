"""
Request dependencies for v1 endpoints.
"""
from fastapi import Request

from cardano_token_api.services.container import ServiceContainer


def get_services(request: Request) -> ServiceContainer:
    """Services built once in the application lifespan."""
    return request.app.state.services
