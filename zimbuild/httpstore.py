"""A store reached through pre-signed URLs handed out by a signing service."""

from __future__ import annotations

import json
import os
import posixpath
import time
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import requests

from zimbuild.store import Item, ItemMeta, NotFound, SignInput, SignOutput, Store


def _should_retry(status: int) -> bool:
    return status >= 500 and status != 501


class HttpStore(Store):
    """Store items via a signing service and signed HTTP requests."""

    retry_max = 4
    retry_wait_min = 1.0
    retry_wait_max = 30.0

    def __init__(self, signing_url: str, auth_token: str) -> None:
        self.signing_url = signing_url
        self.auth_token = auth_token
        self._session = requests.Session()

    def _endpoint(self, name: str) -> str:
        parts = urlsplit(self.signing_url)
        path = posixpath.normpath(posixpath.join(parts.path, name))
        if parts.netloc and not path.startswith("/"):
            path = "/" + path
        return urlunsplit(parts._replace(path=path))

    def _backoff(self, attempt: int) -> float:
        return min(self.retry_wait_max, self.retry_wait_min * (2**attempt))

    def _post(self, url: str, body: bytes) -> requests.Response:
        headers = {"Authorization": f"Bearer {self.auth_token}"}
        attempts = self.retry_max + 1
        last_error: Exception | None = None
        for attempt in range(attempts):
            try:
                response = self._session.post(url, data=body, headers=headers)
            except requests.RequestException as exc:
                last_error = exc
            else:
                if not _should_retry(response.status_code):
                    return response
                last_error = None
                response.close()
            if attempt + 1 < attempts:
                time.sleep(self._backoff(attempt))
        message = f"POST {url} giving up after {attempts} attempt(s)"
        if last_error is not None:
            message = f"{message}: {last_error}"
        raise RuntimeError(f"request failed: {message}")

    def _request(self, url: str, sign_input: SignInput) -> Any:
        if not self.auth_token:
            raise RuntimeError("ZIM_TOKEN is not set")
        body = json.dumps(sign_input.to_dict()).encode("utf-8")
        response = self._post(url, body)
        with response:
            if response.status_code != 200:
                raise RuntimeError(
                    f"request failed ({response.status_code}): {response.text}"
                )
            try:
                return response.json()
            except ValueError as exc:
                raise ValueError(f"failed to decode response: {exc}") from exc

    def _request_sign(self, sign_input: SignInput) -> SignOutput:
        return SignOutput.from_dict(self._request(self._endpoint("sign"), sign_input))

    def _request_head(self, sign_input: SignInput) -> Item:
        return Item.from_dict(self._request(self._endpoint("head"), sign_input))

    def get(self, key: str, dst: str) -> None:
        output = self._request_sign(SignInput(method="GET", name=key))
        try:
            response = requests.get(output.url, stream=True)
        except requests.RequestException as exc:
            raise RuntimeError(f"failed to build request: {exc}") from exc
        with response:
            try:
                handle = open(dst, "wb")
            except OSError as exc:
                raise OSError(f"failed to create file: {exc}") from exc
            with handle:
                try:
                    for chunk in response.iter_content(chunk_size=65536):
                        handle.write(chunk)
                except (OSError, requests.RequestException) as exc:
                    raise OSError(f"failed to write file: {exc}") from exc

    def put(self, key: str, src: str, meta: dict[str, str] | None) -> None:
        try:
            output = self._request_sign(SignInput(method="PUT", name=key, metadata=meta))
        except (RuntimeError, ValueError) as exc:
            raise RuntimeError(f"failed to sign PUT request {src}: {exc}") from exc

        try:
            handle = open(src, "rb")
        except OSError as exc:
            raise OSError(f"failed to open file {src}: {exc}") from exc
        with handle:
            try:
                size = os.fstat(handle.fileno()).st_size
            except OSError as exc:
                raise OSError(f"failed to stat file {src}: {exc}") from exc
            headers = {"Content-Length": str(size)}
            for name, value in (meta or {}).items():
                headers[f"x-amz-meta-{name.lower()}"] = value
            try:
                response = requests.put(output.url, data=handle, headers=headers)
            except requests.RequestException as exc:
                raise RuntimeError(f"failed to make request: {exc}") from exc
        with response:
            if response.status_code != 200:
                raise RuntimeError(f"PUT failed {key}: {response.text}")

    def head(self, key: str) -> ItemMeta:
        item = self._request_head(SignInput(name=key))
        if not item.etag:
            raise NotFound(f"Not found: {key}")
        return ItemMeta(meta=dict(item.metadata or {}))