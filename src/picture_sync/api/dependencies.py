"""Request-scoped accessors for objects held on ``app.state``."""
from __future__ import annotations
from fastapi import Request
from ..config import Settings
from ..storage.metadata import MetadataRecorder
from ..storage.object_store import ObjectStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_object_store(request: Request) -> ObjectStore:
    return request.app.state.object_store


def get_recorder(request: Request) -> MetadataRecorder:
    return request.app.state.recorder
