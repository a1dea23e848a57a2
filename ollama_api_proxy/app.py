"""The HTTP application: routes, handlers and server start-up."""

from __future__ import annotations

import ipaddress
import json
import logging
import posixpath
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import requests
from flask import Flask, Response, request

from .config import Config
from .ollama import ListModelResponse, ListResponse
from .openai import ChatCompletionRequest, ListModels, new_error
from .responses import ErrorResponse

OLLAMA_API_VERSION = "0.6.8"

_STATE_KEY = "ollama_api_proxy"

logger = logging.getLogger(__name__)

IPNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network


@dataclass
class AppState:
    """What the handlers share: the configuration and the upstream HTTP session."""

    config: Config
    session: requests.Session

    @property
    def timeout(self) -> float | None:
        """Upstream timeout in seconds; None when the configured timeout is zero."""
        seconds = self.config.timeout.total_seconds()
        return seconds or None


def _join_url(base: str, element: str) -> str:
    parts = urlsplit(base)
    joined = posixpath.normpath("/".join(p for p in (parts.path, element) if p))
    if joined == ".":
        joined = ""
    path = "/" + joined.lstrip("/")
    if element.endswith("/") and not path.endswith("/"):
        path += "/"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def _trusted_networks(entries: Iterable[str]) -> tuple[IPNetwork, ...]:
    networks = []
    for entry in entries:
        try:
            networks.append(ipaddress.ip_network(entry, strict=False))
        except ValueError:
            logger.warning("no proxies trusted: %r is not an IP address or network", entry)
            return ()
    return tuple(networks)


class _ClientAddress:
    """Take the client address from forwarding headers sent by trusted proxies."""

    _HEADERS = ("HTTP_X_FORWARDED_FOR", "HTTP_X_REAL_IP")

    def __init__(self, app: Any, networks: tuple[IPNetwork, ...]) -> None:
        self.app = app
        self.networks = networks

    def _is_trusted(self, address: str) -> bool:
        try:
            ip = ipaddress.ip_address(address)
        except ValueError:
            return False
        return any(ip in network for network in self.networks)

    def _client_from(self, header: str) -> str | None:
        items = [item.strip() for item in header.split(",")]
        for position, item in reversed(list(enumerate(items))):
            try:
                ipaddress.ip_address(item)
            except ValueError:
                return None
            if position == 0 or not self._is_trusted(item):
                return item
        return None

    def __call__(self, environ: dict[str, Any], start_response: Any) -> Any:
        if self.networks and self._is_trusted(environ.get("REMOTE_ADDR", "")):
            for header in self._HEADERS:
                value = environ.get(header)
                client = self._client_from(value) if value else None
                if client:
                    environ["REMOTE_ADDR"] = client
                    break
        return self.app(environ, start_response)


def _api_error(code: int, message: str) -> tuple[dict[str, Any], int]:
    return new_error(code, message).to_dict(), code


def _relay(upstream: requests.Response) -> Iterator[bytes]:
    try:
        for chunk in upstream.iter_content(chunk_size=None):
            if chunk:
                yield chunk
    except requests.RequestException as exc:
        logger.error("Stream from OpenAI API interrupted: %s", exc)
    finally:
        upstream.close()


def _get_version() -> tuple[dict[str, Any], int]:
    return {"version": OLLAMA_API_VERSION}, 200


def _get_models(state: AppState) -> tuple[dict[str, Any], int]:
    try:
        destination = _join_url(state.config.openai_base_url, "models")
    except ValueError:
        return ErrorResponse(error="Invalid base URL").to_dict(), 500
    logger.info("Fetching models from OpenAI API url=%s", destination)

    failed = ErrorResponse(error="Failed to fetch models").to_dict(), 500
    try:
        upstream = state.session.get(
            destination,
            headers={"Authorization": f"Bearer {state.config.openai_api_key}"},
            timeout=state.timeout,
        )
    except requests.RequestException as exc:
        logger.error("Failed to fetch models error=%s", exc)
        return failed

    with upstream:
        if upstream.status_code != 200:
            logger.error("Failed to fetch models status=%s %s", upstream.status_code, upstream.reason)
            return failed
        try:
            listing = ListModels.from_dict(upstream.json())
        except (ValueError, requests.RequestException) as exc:
            logger.error("Failed to decode models response error=%s", exc)
            return ErrorResponse(error="Failed to decode models response").to_dict(), 500

    response = ListResponse(
        models=[
            ListModelResponse(
                name=model.id,
                model=model.id,
                modified_at=datetime.fromtimestamp(model.created, timezone.utc).astimezone(),
                size=0,
                digest="",
            )
            for model in listing.data
        ]
    )
    return response.to_dict(), 200


def _chat_completion(state: AppState) -> Any:
    try:
        text = request.get_data().decode("utf-8").lstrip()
    except UnicodeDecodeError as exc:
        return _api_error(400, str(exc))
    if not text:
        return _api_error(400, "Request body is empty")
    try:
        data, _ = json.JSONDecoder().raw_decode(text)
        chat_request = ChatCompletionRequest.from_dict({} if data is None else data)
    except ValueError as exc:
        return _api_error(400, str(exc))

    try:
        destination = _join_url(state.config.openai_base_url, "/chat/completions")
    except ValueError:
        return _api_error(500, "Invalid base URL")

    payload = json.dumps(chat_request.to_dict(), separators=(",", ":"), ensure_ascii=False).encode()
    headers = {
        "Authorization": f"Bearer {state.config.openai_api_key}",
        "Content-Type": "application/json",
    }

    if chat_request.stream:
        headers.update(
            {"Accept": "text/event-stream", "Cache-Control": "no-cache", "Connection": "keep-alive"}
        )
        try:
            upstream = state.session.post(
                destination, data=payload, headers=headers, timeout=state.timeout, stream=True
            )
        except requests.RequestException:
            return _api_error(500, "Failed to send request to OpenAI API")
        return Response(
            _relay(upstream),
            status=200,
            content_type="text/event-stream",
            headers={"Cache-Control": "no-cache"},
        )

    try:
        upstream = state.session.post(destination, data=payload, headers=headers, timeout=state.timeout)
    except requests.RequestException:
        return _api_error(500, "Failed to send request to OpenAI API")
    with upstream:
        if upstream.status_code != 200:
            return _api_error(upstream.status_code, "OpenAI API error")
        try:
            body = upstream.content
        except requests.RequestException:
            return _api_error(500, "Failed to read response from OpenAI API")
    return Response(body, status=200, content_type="application/json")


def _not_implemented(error: Exception) -> tuple[dict[str, Any], int]:
    logger.info("Not Implemented path=%s method=%s", request.path, request.method)
    return {"error": "Not Implemented"}, 501


def create_app(config: Config, session: requests.Session | None = None) -> Flask:
    """Build the application with its routes; unknown routes answer 501."""
    state = AppState(config=config, session=session if session is not None else requests.Session())
    app = Flask(__name__)
    app.json.sort_keys = False
    app.extensions[_STATE_KEY] = state
    app.wsgi_app = _ClientAddress(app.wsgi_app, _trusted_networks(config.trust_domains))

    app.add_url_rule("/api/version", "version", _get_version, methods=["GET"])
    app.add_url_rule("/api/tags", "tags", partial(_get_models, state), methods=["GET"])
    app.add_url_rule(
        "/v1/chat/completions",
        "chat_completions",
        partial(_chat_completion, state),
        methods=["POST"],
    )
    app.register_error_handler(404, _not_implemented)
    app.register_error_handler(405, _not_implemented)
    return app


def run(app: Flask, config: Config) -> None:
    """Serve the application on the configured host and port."""
    logger.info("Starting server address=%s port=%s", config.host, config.port)
    try:
        app.run(host=config.host, port=config.port, threaded=True)
    except OSError as exc:
        logger.error("Failed to start server error=%s", exc)
        raise RuntimeError(f"failed to start server: {exc}") from exc