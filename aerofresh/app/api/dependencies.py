"""FastAPI dependencies resolving per-application singletons."""

from typing import Annotated

from fastapi import Depends, Request

from aerofresh.app.db.repository import AircraftRepository
from aerofresh.app.middleware.api_middleware import APIMiddleware


def get_repository(request: Request) -> AircraftRepository:
    return request.app.state.repository


def get_api_middleware(request: Request) -> APIMiddleware:
    return request.app.state.api_middleware


RepositoryDep = Annotated[AircraftRepository, Depends(get_repository)]
APIMiddlewareDep = Annotated[APIMiddleware, Depends(get_api_middleware)]
