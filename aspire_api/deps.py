"""FastAPI dependencies exposing the collaborators created by the app factory."""

from fastapi import Request

from .config_loader import Config
from .database import Database


def get_db(request: Request) -> Database:
    return request.app.state.db


def get_config(request: Request) -> Config:
    return request.app.state.config


def get_mailer(request: Request):
    return request.app.state.mailer


def get_storage(request: Request):
    return request.app.state.storage
