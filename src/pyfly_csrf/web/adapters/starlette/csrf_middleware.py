# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""CsrfMiddleware — double-submit CSRF protection for Starlette apps, pure ASGI.

* **Safe methods** (GET, HEAD, OPTIONS, TRACE) pass through. The request
  gets a form token at ``request.state.csrf_token`` for templates to embed.
  If the client already holds a valid CSRF cookie the token is re-masked
  from it; otherwise a new pair is issued and the cookie is set on the
  response.
* **Unsafe methods** need the CSRF cookie plus the form token, taken from
  the ``X-CSRF-Token`` header, the ``csrf-token`` query parameter, or the
  ``csrf-token`` field of a urlencoded or multipart body. Failures get a
  403 whose body never says which check failed.

Requests carrying ``Authorization: Bearer …`` are API clients and skip
validation when ``bearer_bypass`` is on.
"""

from __future__ import annotations

import fnmatch
import logging
from collections.abc import Sequence

from starlette.datastructures import MutableHeaders, UploadFile
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from pyfly_csrf.config.properties.csrf import CsrfProperties
from pyfly_csrf.kernel.exceptions import CsrfValidationException
from pyfly_csrf.security.csrf.protection import CsrfProtection

logger = logging.getLogger(__name__)

SAFE_METHODS: frozenset[str] = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})
"""HTTP methods that do not require CSRF validation."""

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


class CsrfMiddleware:
    """Issues CSRF tokens on safe requests and verifies them on unsafe ones.

    Args:
        app: The wrapped ASGI application.
        protection: Token protocol shared with the rest of the application.
        properties: Transport settings (names, cookie attributes, TTL).
        exclude_paths: Extra glob patterns that skip the middleware entirely.
    """

    def __init__(
        self,
        app: ASGIApp,
        protection: CsrfProtection,
        properties: CsrfProperties,
        exclude_paths: Sequence[str] = (),
    ) -> None:
        self.app = app
        self._protection = protection
        self._props = properties
        self._exclude_patterns = [*properties.exclude_paths, *exclude_paths]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self._props.enabled:
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        if self._is_excluded(request.url.path):
            await self.app(scope, receive, send)
            return

        if request.method in SAFE_METHODS:
            await self._issue(request, scope, receive, send)
            return

        auth_header = request.headers.get("authorization", "")
        if self._props.bearer_bypass and auth_header.startswith("Bearer "):
            await self.app(scope, receive, send)
            return

        cookie_token = request.cookies.get(self._props.cookie_name)
        form_token, receive = await self._extract_form_token(request, receive)

        if not cookie_token or not form_token:
            logger.debug("CSRF token missing on %s %s", request.method, request.url.path)
            await self._reject("CSRF token missing")(scope, receive, send)
            return

        if not self._protection.is_valid_token_pair(cookie_token, form_token):
            await self._reject("CSRF token invalid")(scope, receive, send)
            return

        request.state.csrf_token = form_token
        await self.app(scope, receive, send)

    # ------------------------------------------------------------------
    # Safe methods
    # ------------------------------------------------------------------

    async def _issue(self, request: Request, scope: Scope, receive: Receive, send: Send) -> None:
        cookie_value: str | None = None
        form_token: str | None = None

        existing = request.cookies.get(self._props.cookie_name)
        if existing:
            try:
                form_token = self._protection.reissue_form_token(existing)
            except CsrfValidationException:
                form_token = None

        if form_token is None:
            cookie_value, form_token = self._protection.generate_token_pair(self._props.ttl_seconds)

        request.state.csrf_token = form_token

        if cookie_value is None:
            await self.app(scope, receive, send)
            return

        set_cookie = self._set_cookie_header(cookie_value)

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.append("set-cookie", set_cookie)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _set_cookie_header(self, value: str) -> str:
        response = Response()
        response.set_cookie(
            key=self._props.cookie_name,
            value=value,
            max_age=self._props.ttl_seconds,
            path=self._props.cookie_path,
            domain=self._props.cookie_domain,
            secure=self._props.cookie_secure,
            httponly=self._props.cookie_httponly,
            samesite=self._props.cookie_samesite,
        )
        return response.headers["set-cookie"]

    # ------------------------------------------------------------------
    # Unsafe methods
    # ------------------------------------------------------------------

    async def _extract_form_token(self, request: Request, receive: Receive) -> tuple[str | None, Receive]:
        """Find the form token; returns a receive callable that still yields the body."""
        token = request.headers.get(self._props.header_name)
        if token:
            return token, receive

        token = request.query_params.get(self._props.query_param)
        if token:
            return token, receive

        content_type = request.headers.get("content-type", "")
        if not content_type.startswith(_FORM_CONTENT_TYPES):
            return None, receive

        body = await request.body()
        form_request = Request(request.scope, _replay(body, receive))
        form = await form_request.form()
        try:
            value = form.get(self._props.form_field)
        finally:
            await form.close()

        token = None if isinstance(value, UploadFile) or value is None else str(value)
        return token, _replay(body, receive)

    @staticmethod
    def _reject(message: str) -> JSONResponse:
        return JSONResponse({"error": message}, status_code=403)

    def _is_excluded(self, path: str) -> bool:
        return any(fnmatch.fnmatch(path, pattern) for pattern in self._exclude_patterns)


def _replay(body: bytes, receive: Receive) -> Receive:
    """Receive callable that yields *body* once, then defers to *receive*."""
    sent = False

    async def replay() -> Message:
        nonlocal sent
        if not sent:
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay
