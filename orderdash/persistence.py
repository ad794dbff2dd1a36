"""Best-effort persistence of dashboard state.

The remote dashboard store is the primary copy; a local cache keeps the last
known state so the builder still loads when the store is unreachable. No
failure here is ever propagated to the caller.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from orderdash.exceptions import RemoteStoreError
from orderdash.layout import (
    DashboardState,
    Widget,
    active_widgets,
    make_state,
    remove_widget,
    set_date_filter,
    state_from_dict,
    state_to_dict,
)
from orderdash.settings import Settings, get_settings


logger = logging.getLogger(__name__)

CONFIG_PATH = "/dashboard/config"


# ---------------- Cache ports ----------------
class CachePort:
    def read(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def write(self, payload: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class MemoryCache(CachePort):
    def __init__(self, payload: Optional[Mapping[str, Any]] = None):
        self._payload = dict(payload) if payload is not None else None

    def read(self) -> Optional[Dict[str, Any]]:
        return dict(self._payload) if self._payload is not None else None

    def write(self, payload: Mapping[str, Any]) -> None:
        self._payload = {**payload, "timestamp": int(time.time() * 1000)}

    def clear(self) -> None:
        self._payload = None


class JsonFileCache(CachePort):
    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> Optional[Dict[str, Any]]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Dashboard cache unreadable at %s: %s", self.path, exc)
            return None
        return data if isinstance(data, dict) else None

    def write(self, payload: Mapping[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        body = {**payload, "timestamp": int(time.time() * 1000)}
        self.path.write_text(json.dumps(body, default=str), encoding="utf-8")

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


# ---------------- Remote stores ----------------
class RemoteStore:
    def load(self) -> Dict[str, Any]:
        raise NotImplementedError

    def save(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


class InMemoryRemoteStore(RemoteStore):
    def __init__(self, payload: Optional[Mapping[str, Any]] = None):
        self.payload: Dict[str, Any] = dict(payload) if payload else {"widgets": [], "dateFilter": "all"}
        self.saves = 0

    def load(self) -> Dict[str, Any]:
        return dict(self.payload)

    def save(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        self.saves += 1
        self.payload = dict(payload)
        return dict(self.payload)


class HttpRemoteStore(RemoteStore):
    """Talks to the `/dashboard/config` endpoints of the orderdash API."""

    def __init__(self, base_url: str = "", *, timeout: float = 10.0, client: Optional[httpx.Client] = None):
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise RemoteStoreError(f"{method} {path} failed: {exc}") from exc
        if not isinstance(data, dict):
            raise RemoteStoreError(f"{method} {path} returned {type(data).__name__}, expected an object")
        return data

    def load(self) -> Dict[str, Any]:
        return self._request("GET", CONFIG_PATH)

    def save(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        return self._request("POST", CONFIG_PATH, json=dict(payload))

    def close(self) -> None:
        self._client.close()


# ---------------- Facade ----------------
def _fingerprint(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, sort_keys=True, default=str)


class DashboardPersistence:
    def __init__(self, remote: Optional[RemoteStore], cache: CachePort, *, attempts: int = 1):
        self.remote = remote
        self.cache = cache
        self.attempts = max(1, int(attempts))
        self._last_ack: Optional[str] = None

    def _call(self, op: str, fn: Callable[[], Dict[str, Any]]) -> Dict[str, Any]:
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.attempts + 1):
            try:
                return fn()
            except Exception as exc:
                last_exc = exc
                logger.warning("%s failed (attempt %d/%d): %s", op, attempt, self.attempts, exc)
        raise RemoteStoreError(f"{op} failed", {"attempts": self.attempts}) from last_exc

    def _write_cache(self, payload: Mapping[str, Any]) -> None:
        try:
            self.cache.write(payload)
        except Exception:
            logger.exception("Dashboard cache write failed")

    def load_cached(self) -> DashboardState:
        try:
            data = self.cache.read()
        except Exception:
            logger.exception("Dashboard cache read failed")
            data = None
        return state_from_dict(data)

    def load(self) -> DashboardState:
        if self.remote is None:
            return self.load_cached()
        try:
            payload = self._call("Dashboard load", self.remote.load)
        except RemoteStoreError:
            logger.warning("Dashboard store unreachable, using local cache")
            return self.load_cached()
        if not isinstance(payload, Mapping) or not isinstance(payload.get("widgets"), list):
            return self.load_cached()
        state = state_from_dict(payload)
        stored = state_to_dict(state)
        self._write_cache(stored)
        self._last_ack = _fingerprint(stored)
        return state

    def save(self, state: DashboardState) -> DashboardState:
        payload = state_to_dict(state)
        fingerprint = _fingerprint(payload)
        if self.remote is None:
            self._write_cache(payload)
            return state
        if fingerprint == self._last_ack:
            logger.debug("Dashboard unchanged since last save, skipping remote write")
            self._write_cache(payload)
            return state
        try:
            ack = self._call("Dashboard save", lambda: self.remote.save(payload))
        except RemoteStoreError:
            logger.warning("Dashboard store unreachable, saved to local cache only")
            self._write_cache(payload)
            return state
        acked = isinstance(ack, Mapping) and isinstance(ack.get("widgets"), list)
        saved = state_from_dict(ack) if acked else state
        self._last_ack = fingerprint
        self._write_cache(payload)
        return saved

    def save_date_filter(self, state: DashboardState, value: object) -> DashboardState:
        return self.save(set_date_filter(state, value))

    def add_widget(self, widget: Widget) -> DashboardState:
        state = self.load()
        return self.save(make_state(state.widgets + (widget,), state.date_filter))

    def delete_widget(self, widget_id: str) -> DashboardState:
        state = self.load()
        return self.save(remove_widget(state, widget_id))

    def clear(self) -> None:
        self.save(DashboardState())
        try:
            self.cache.clear()
        except Exception:
            logger.exception("Dashboard cache clear failed")

    def has_widgets(self) -> bool:
        return bool(active_widgets(self.load().widgets))


def persistence_from_settings(settings: Optional[Settings] = None) -> DashboardPersistence:
    settings = settings or get_settings()
    remote = HttpRemoteStore(settings.remote_url, timeout=settings.remote_timeout) if settings.remote_url else None
    return DashboardPersistence(remote, JsonFileCache(settings.cache_path), attempts=settings.remote_attempts)
