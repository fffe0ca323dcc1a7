import os
import logging
from typing import Any, Iterable, Mapping, Optional

import requests
from dotenv import load_dotenv

from .utils import open_session
from ..errors import StorageError, StorageUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


def _encode_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _filter_params(filters: Optional[Mapping[str, Any]]) -> dict[str, str]:
    """Translate ``{column: value}`` into PostgREST equality filters."""
    params: dict[str, str] = {}
    for column, value in (filters or {}).items():
        operator = "is" if value is None else "eq"
        params[column] = f"{operator}.{_encode_value(value)}"
    return params


class BackendClient:
    """Thin table-level client over the backend's REST endpoint.

    Only the four verbs the application needs are exposed. Every failure is
    translated into :class:`~secretsanta.errors.StorageError` (rejected
    request, or a read timeout with ``outcome_unknown`` set) or
    :class:`~secretsanta.errors.StorageUnavailableError` (connection failure
    or connect timeout). Retrying is left to the caller.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        load_dotenv()
        url = base_url or os.getenv("SUPABASE_URL")
        if not url:
            raise ValueError("Environment variable 'SUPABASE_URL' is not set")
        self.base_url = url.rstrip("/") + "/rest/v1"

        if session is None:
            key = api_key or os.getenv("SUPABASE_ANON_KEY")
            if not key:
                raise ValueError("Environment variable 'SUPABASE_ANON_KEY' is not set")
            session = open_session(key, access_token or os.getenv("SUPABASE_ACCESS_TOKEN"))
        self.session = session

        if timeout is None:
            timeout = float(os.getenv("SUPABASE_TIMEOUT", DEFAULT_TIMEOUT))
        self.timeout = timeout

    # -------- core request --------
    def _request(
        self,
        method: str,
        table: str,
        *,
        params: Optional[dict] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        url = f"{self.base_url}/{table}"
        headers = {"Prefer": prefer} if prefer else None
        logger.debug(f"{method.upper()} {table} params={sorted((params or {}).keys())}")
        try:
            r = self.session.request(
                method=method.upper(),
                url=url,
                headers=headers,
                params=params,
                json=json,
                timeout=self.timeout,
            )
            r.raise_for_status()
        except requests.ConnectionError as e:
            # Includes ConnectTimeout: the request never reached the backend.
            logger.critical(f"Backend unreachable during {method.upper()} {table}: {e}")
            raise StorageUnavailableError(f"Backend unreachable: {e}") from e
        except requests.Timeout as e:
            logger.error(f"No response to {method.upper()} {table} within {self.timeout}s")
            raise StorageError(
                f"Backend did not answer {method.upper()} {table}; outcome unknown",
                outcome_unknown=True,
            ) from e
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.error(f"Backend rejected {method.upper()} {table} (status {status})")
            raise StorageError(
                f"Backend rejected {method.upper()} {table}", status_code=status
            ) from e
        return r.json() if r.content else None

    # -------- table verbs --------
    def select(
        self,
        table: str,
        filters: Optional[Mapping[str, Any]] = None,
        *,
        order: Optional[str] = None,
        columns: str = "*",
    ) -> list[dict]:
        """Return rows of ``table`` matching every equality filter.

        ``order`` follows the backend syntax, e.g. ``"created_at.desc"``.
        """
        params = {"select": columns, **_filter_params(filters)}
        if order:
            params["order"] = order
        return self._request("GET", table, params=params) or []

    def insert(self, table: str, rows: Iterable[Mapping[str, Any]]) -> list[dict]:
        """Insert ``rows`` in a single request and return the stored rows."""
        payload = [dict(row) for row in rows]
        if not payload:
            return []
        return (
            self._request(
                "POST", table, json=payload, prefer="return=representation"
            )
            or []
        )

    def update(
        self, table: str, values: Mapping[str, Any], filters: Mapping[str, Any]
    ) -> list[dict]:
        """Apply ``values`` to the rows matching ``filters``."""
        if not filters:
            raise ValueError("update requires at least one filter")
        return (
            self._request(
                "PATCH",
                table,
                params=_filter_params(filters),
                json=dict(values),
                prefer="return=representation",
            )
            or []
        )

    def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        """Delete the rows matching ``filters``."""
        if not filters:
            raise ValueError("delete requires at least one filter")
        self._request("DELETE", table, params=_filter_params(filters))
