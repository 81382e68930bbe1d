"""Entrypoint for the FastAPI application."""

import os

from dotenv import load_dotenv

# Load .env locally only; deployed environments inject variables directly.
env_path = os.path.join(os.path.dirname(__file__), "../.env")
if os.path.exists(env_path):
    load_dotenv(dotenv_path=os.path.abspath(env_path))

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import claims, employees, health, roles, travel_limits
from .api.dependencies import claim_flow_error_handler
from .core.errors import ClaimFlowError
from .core.logging import configure_logging


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title="Travel Claims", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ClaimFlowError, claim_flow_error_handler)

    app.include_router(health.router, prefix="/api")
    app.include_router(roles.router, prefix="/api")
    app.include_router(claims.router, prefix="/api")
    app.include_router(travel_limits.router, prefix="/api")
    app.include_router(employees.router, prefix="/api")

    return app


app = create_app()
