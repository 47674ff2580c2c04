"""FastAPI dependencies exposing the per-app services built in create_app."""

from __future__ import annotations

from fastapi import Request

from .services import AccountService, ProfileService, TaskService


def get_account_service(request: Request) -> AccountService:
    return request.app.state.account_service


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


def get_profile_service(request: Request) -> ProfileService:
    return request.app.state.profile_service
