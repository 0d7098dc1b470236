# Overview: Uniform result shape for mutations and the transaction wrapper that produces it.

"""
Every mutating service operation returns an ActionResult instead of raising:

    {"success": bool, "message": str, "data": ..., "error": kind | None,
     "field": str | None, "code": str | None, "stale_views": [...]}

so a caller always has a user-presentable message.

`service_action` runs the wrapped function as one transaction:
- success: commit, return the function's ActionResult
- WorkshopError (validation, auth, conflict, not found): roll back, return a
  failed result carrying the error's message
- IntegrityError from the store: roll back, report as a conflict
- any other SQLAlchemyError: roll back, log, return a generic failure. Raw
  store errors are never surfaced.

Stale views name the logical listings/details a presentation layer should
refresh after a successful mutation ("cars", "car:12", "client:3", ...).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from functools import wraps
from typing import Any

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import ConflictError, TransactionFailure, WorkshopError
from .concurrency import atomic


GENERIC_FAILURE_MESSAGE = "Internal error while saving changes. Please try again."


def _serialize(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


@dataclass
class ActionResult:
    success: bool
    message: str
    data: Any = None
    error: str | None = None
    field: str | None = None
    code: str | None = None
    stale_views: tuple[str, ...] = ()
    status_code: int = 200

    @classmethod
    def ok(cls, message: str, data: Any = None, *, stale_views=(), status_code: int = 200) -> "ActionResult":
        # dict.fromkeys keeps first-seen order while dropping duplicates
        return cls(
            success=True,
            message=message,
            data=data,
            stale_views=tuple(dict.fromkeys(stale_views)),
            status_code=status_code,
        )

    @classmethod
    def fail(cls, exc: WorkshopError) -> "ActionResult":
        return cls(
            success=False,
            message=exc.message,
            error=exc.kind,
            field=exc.field,
            code=exc.code,
            status_code=exc.http_status,
        )

    def to_dict(self) -> dict:
        payload = {
            "success": self.success,
            "message": self.message,
            "stale_views": list(self.stale_views),
        }
        if self.data is not None:
            payload["data"] = _serialize(self.data)
        if not self.success:
            payload["error"] = self.error
            payload["field"] = self.field
            payload["code"] = self.code
        return payload


@dataclass
class Page:
    """One page of a listing. Page numbers are 1-based."""
    items: list = field(default_factory=list)
    total: int = 0
    current_page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        if not self.page_size:
            return 0
        return math.ceil(self.total / self.page_size)

    @classmethod
    def empty(cls, page_size: int = 10) -> "Page":
        return cls(items=[], total=0, current_page=1, page_size=page_size)

    def to_dict(self) -> dict:
        return {
            "items": _serialize(self.items),
            "total": self.total,
            "total_pages": self.total_pages,
            "current_page": self.current_page,
        }


def _describe_integrity_error(exc: IntegrityError) -> ConflictError:
    detail = str(getattr(exc, "orig", exc)).lower()
    for column, label in (
        ("license_plate", "License plate"),
        ("vin", "VIN"),
        ("dni", "DNI"),
        ("email", "Email"),
        ("order_number", "Order number"),
    ):
        if column in detail:
            return ConflictError(f"{label} is already in use", field=column)
    return ConflictError("The record conflicts with an existing one")


def service_action(func):
    """Run a mutating service function as one transaction returning an ActionResult."""
    @wraps(func)
    def wrapper(*args, **kwargs) -> ActionResult:
        try:
            with atomic():
                return func(*args, **kwargs)
        except WorkshopError as exc:
            return ActionResult.fail(exc)
        except IntegrityError as exc:
            current_app.logger.warning("Integrity error in %s: %s", func.__name__, exc.orig)
            return ActionResult.fail(_describe_integrity_error(exc))
        except SQLAlchemyError:
            current_app.logger.exception("Store transaction failed in %s", func.__name__)
            return ActionResult.fail(TransactionFailure(GENERIC_FAILURE_MESSAGE))

    return wrapper


def page_bounds(page: Any, page_size: int) -> tuple[int, int]:
    """(page, offset) for a requested 1-based page; junk input means page 1."""
    try:
        page = int(page)
    except (TypeError, ValueError):
        page = 1
    page = max(page, 1)
    return page, (page - 1) * page_size
