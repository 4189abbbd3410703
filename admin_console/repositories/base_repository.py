"""
Base Repository.

Provides shared infrastructure for all repositories:
- SupabaseBackend reference
- Logger reference
- Query execution that converts library failures into
  ``BackendCallError`` and rows into pydantic models
"""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from pydantic import BaseModel, ValidationError
from supabase import Client as SupabaseClient

from admin_console.backend import (
    BackendCallError,
    MalformedResponseError,
    SupabaseBackend,
)
from admin_console.logger import StructuredLogger

M = TypeVar("M", bound=BaseModel)

# Row payloads as returned by postgrest: one object, a list of objects, or nothing.
RowData = Optional[object]


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(self, backend: SupabaseBackend, logger: StructuredLogger) -> None:
        self._backend = backend
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client (raises ``BackendCallError`` if unconfigured)."""
        return self._backend.supabase

    def _execute(
        self,
        run_query: Callable[[], object],
        *,
        operation_name: str,
    ) -> RowData:
        """Run a postgrest query and return its ``data`` payload.

        Parameters
        ----------
        run_query:
            Zero-argument callable that builds the query and calls
            ``.execute()``.  Building happens inside the guard because
            ``self.supabase`` itself raises when unconfigured.
        operation_name:
            Human-readable label for log messages, e.g.
            ``"find_by_email (profiles)"``.

        Raises
        ------
        BackendCallError
            On any failure raised by the client.
        """
        try:
            response = run_query()
        except BackendCallError:
            raise
        except Exception as exc:
            error = BackendCallError.from_exception(exc, operation_name)
            self._logger.warning(
                "Supabase %s failed: %s (code=%s)",
                operation_name,
                error.message,
                error.code,
            )
            raise error from exc

        # maybe_single() returns None instead of a response when no row matches.
        if response is None:
            return None
        return getattr(response, "data", None)

    @staticmethod
    def _parse(model: type[M], row: object, *, operation_name: str) -> M:
        """Validate one row into *model*, failing fast on a malformed shape."""
        try:
            return model.model_validate(row)
        except ValidationError as exc:
            raise MalformedResponseError(
                f"{model.__name__} row failed validation: "
                f"{exc.error_count()} error(s).",
                operation=operation_name,
            ) from exc

    def _parse_rows(self, model: type[M], data: RowData, *, operation_name: str) -> list[M]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise MalformedResponseError(
                f"Expected a list of rows from {self.TABLE}.",
                operation=operation_name,
            )
        return [self._parse(model, row, operation_name=operation_name) for row in data]
