"""
Save/delete pipeline messages.

Each message carries the application name, the entity type name, the entity
id and the entity itself (payload). Messages are immutable values.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class SaveRequested:
    app_name: str
    entity_type: str
    entity_id: str
    payload: Any


@dataclass(frozen=True)
class SaveValidated:
    app_name: str
    entity_type: str
    entity_id: str
    payload: Any
    validated: bool


@dataclass(frozen=True)
class SaveCommitted:
    app_name: str
    entity_type: str
    entity_id: str
    payload: Any


@dataclass(frozen=True)
class SaveCommitFault:
    app_name: str
    entity_type: str
    entity_id: str
    payload: Any
    error_message: str


@dataclass(frozen=True)
class DeleteRequested:
    app_name: str
    entity_type: str
    entity_id: str
    payload: Optional[Any]


@dataclass(frozen=True)
class DeleteValidated:
    app_name: str
    entity_type: str
    entity_id: str
    payload: Optional[Any]
    validated: bool


@dataclass(frozen=True)
class DeleteCommitted:
    app_name: str
    entity_type: str
    entity_id: str
    payload: Optional[Any]
