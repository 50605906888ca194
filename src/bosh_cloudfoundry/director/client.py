"""HTTP client for the BOSH director API."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Type, Union

import httpx
import structlog

from bosh_cloudfoundry.core.config import Settings
from bosh_cloudfoundry.core.exceptions import (
    AuthenticationError,
    DeployError,
    DirectorError,
    UploadError,
)

logger = structlog.get_logger()

TASK_FINISHED_STATES = {"done"}
TASK_FAILED_STATES = {"error", "cancelled", "timeout"}


class DirectorClient:
    """Blocking client for the director endpoints the plugin needs.

    Mutating calls answer with a redirect to a director task; the client
    follows the task until it finishes and raises if it did not succeed.
    """

    def __init__(
        self,
        base_url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        *,
        verify: bool = False,
        timeout: float = 30.0,
        poll_interval: float = 1.0,
        task_timeout: float = 3600.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        auth = (username, password) if username and password else None
        self.poll_interval = poll_interval
        self.task_timeout = task_timeout
        self._client = httpx.Client(
            base_url=base_url,
            auth=auth,
            verify=verify,
            timeout=httpx.Timeout(timeout),
            follow_redirects=False,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[httpx.BaseTransport] = None) -> "DirectorClient":
        return cls(
            settings.director_url or "",
            settings.director_username,
            settings.director_password,
            verify=settings.verify_tls,
            timeout=settings.request_timeout_seconds,
            poll_interval=settings.task_poll_interval_seconds,
            task_timeout=settings.task_timeout_seconds,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "DirectorClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        error_cls: Type[DirectorError] = DirectorError,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise error_cls(f"Director request {method} {path} failed: {e}")
        if resp.status_code == 401:
            raise AuthenticationError("Director rejected the supplied credentials")
        if resp.status_code >= 400:
            raise error_cls(f"Director returned {resp.status_code} for {method} {path}: {resp.text.strip()}")
        return resp

    @staticmethod
    def _decode(resp: httpx.Response, error_cls: Type[DirectorError] = DirectorError) -> Any:
        try:
            return resp.json()
        except ValueError:
            request = resp.request
            raise error_cls(f"Director returned a non-JSON response for {request.method} {request.url.path}")

    def _get_json(self, path: str, error_cls: Type[DirectorError] = DirectorError) -> Any:
        return self._decode(self._request("GET", path, error_cls), error_cls)

    def _track_task(self, resp: httpx.Response, error_cls: Type[DirectorError]) -> Dict[str, Any]:
        """Wait for the task a mutating call redirected to."""
        if resp.status_code not in (301, 302, 303):
            return self._decode(resp, error_cls) if resp.content else {}

        location = resp.headers.get("location", "")
        task_id = location.rstrip("/").rsplit("/", 1)[-1]
        if not task_id.isdigit():
            raise error_cls(f"Director redirected to an unexpected location: {location}")

        logger.info("Tracking director task", task_id=task_id)
        deadline = time.monotonic() + self.task_timeout
        while True:
            task = self._get_json(f"/tasks/{task_id}", error_cls)
            state = task.get("state")
            if state in TASK_FINISHED_STATES:
                logger.info("Director task finished", task_id=task_id)
                return task
            if state in TASK_FAILED_STATES:
                raise error_cls(f"Director task {task_id} {state}: {task.get('result', '')}")
            if time.monotonic() >= deadline:
                raise error_cls(f"Director task {task_id} did not finish within {self.task_timeout}s")
            time.sleep(self.poll_interval)

    def get_status(self) -> Dict[str, Any]:
        info = self._get_json("/info")
        cpi = info.get("cpi")
        if not cpi and isinstance(info.get("cpi_info"), dict):
            cpi = info["cpi_info"].get("name")
        return {"uuid": info.get("uuid"), "cpi": cpi, "name": info.get("name")}

    def list_releases(self) -> List[Dict[str, Any]]:
        return self._get_json("/releases")

    def has_release(self, name: str, version: int) -> bool:
        for release in self.list_releases():
            if release.get("name") != name:
                continue
            versions = release.get("release_versions") or release.get("versions") or []
            for entry in versions:
                value = entry.get("version") if isinstance(entry, dict) else entry
                if str(value) == str(version):
                    return True
        return False

    def list_stemcells(self) -> List[Dict[str, Any]]:
        return self._get_json("/stemcells")

    def has_stemcell(self, name: str) -> bool:
        """True when any uploaded stemcell name starts with ``name``."""
        return any(str(s.get("name", "")).startswith(name) for s in self.list_stemcells())

    def upload_release(self, location: Union[str, Path]) -> Dict[str, Any]:
        location = str(location)
        if location.startswith(("http://", "https://")):
            resp = self._request("POST", "/releases", UploadError, json={"location": location})
        else:
            path = Path(location)
            if not path.is_file():
                raise UploadError(f"Release tarball not found: {path}")
            logger.info("Uploading release", path=str(path), size=path.stat().st_size)
            with open(path, "rb") as f:
                resp = self._request(
                    "POST",
                    "/releases",
                    UploadError,
                    content=f.read(),
                    headers={"Content-Type": "application/x-compressed"},
                )
        return self._track_task(resp, UploadError)

    def upload_stemcell(self, url: str) -> Dict[str, Any]:
        logger.info("Uploading stemcell", url=url)
        resp = self._request("POST", "/stemcells", UploadError, json={"location": url})
        return self._track_task(resp, UploadError)

    def deploy(self, manifest: bytes) -> Dict[str, Any]:
        resp = self._request(
            "POST",
            "/deployments",
            DeployError,
            content=manifest,
            headers={"Content-Type": "text/yaml"},
        )
        return self._track_task(resp, DeployError)

    def list_properties(self, deployment_name: str) -> Dict[str, Any]:
        data = self._get_json(f"/deployments/{deployment_name}/properties")
        if isinstance(data, list):
            return {item["name"]: item.get("value") for item in data if isinstance(item, dict) and "name" in item}
        return dict(data)


class ReleaseCommand:
    """Release collaborator backed by the director client."""

    def __init__(self, client: DirectorClient):
        self.client = client

    def upload(self, path: Union[str, Path]) -> Dict[str, Any]:
        return self.client.upload_release(path)


class StemcellCommand:
    """Stemcell collaborator backed by the director client."""

    def __init__(self, client: DirectorClient):
        self.client = client

    def upload(self, url: str) -> Dict[str, Any]:
        return self.client.upload_stemcell(url)
