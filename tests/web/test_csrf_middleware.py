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
"""Tests for CsrfMiddleware — double-submit protection for Starlette apps."""

from __future__ import annotations

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from pyfly_csrf.config.properties.csrf import CsrfProperties
from pyfly_csrf.security.csrf.encoding import encode
from pyfly_csrf.security.csrf.expiry import FixedClock
from pyfly_csrf.security.csrf.protection import CsrfProtection, DoubleSubmitCsrfProtection
from pyfly_csrf.security.csrf.types import TokenPair
from pyfly_csrf.web.adapters.starlette import CsrfMiddleware

KEY = bytes(range(32))
T = 1_700_000_000


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _form_page(request: Request) -> JSONResponse:
    return JSONResponse({"csrf_token": request.state.csrf_token})


async def _submit(request: Request) -> JSONResponse:
    form = await request.form()
    return JSONResponse({"ok": True, "name": form.get("name")})


async def _api(request: Request) -> PlainTextResponse:
    body = await request.body()
    return PlainTextResponse(body.decode() or "empty")


def _create_app(
    protection: CsrfProtection | None = None,
    extra_excludes: tuple[str, ...] = (),
    **overrides,
) -> tuple[TestClient, CsrfProtection]:
    """Minimal Starlette app behind CsrfMiddleware; *overrides* go to CsrfProperties."""
    protection = protection or DoubleSubmitCsrfProtection(KEY, clock=FixedClock(T))
    props = CsrfProperties(secret_key=encode(KEY), cookie_secure=False, **overrides)
    app = Starlette(
        routes=[
            Route("/form", _form_page, methods=["GET"]),
            Route("/submit", _submit, methods=["POST"]),
            Route("/api", _api, methods=["POST", "PUT", "DELETE"]),
            Route("/health", _api, methods=["POST"]),
        ],
        middleware=[
            Middleware(CsrfMiddleware, protection=protection, properties=props, exclude_paths=extra_excludes),
        ],
    )
    return TestClient(app), protection


class _RecordingProtection:
    """CsrfProtection that delegates to a real one and records which operations ran."""

    def __init__(self, inner: DoubleSubmitCsrfProtection) -> None:
        self._inner = inner
        self.calls: list[str] = []

    def generate_token_pair(self, ttl_seconds: int) -> TokenPair:
        self.calls.append("generate")
        return self._inner.generate_token_pair(ttl_seconds)

    def verify_token_pair(self, cookie_token: str, form_token: str) -> None:
        self.calls.append("verify")
        self._inner.verify_token_pair(cookie_token, form_token)

    def is_valid_token_pair(self, cookie_token: str, form_token: str) -> bool:
        self.calls.append("is_valid")
        return self._inner.is_valid_token_pair(cookie_token, form_token)

    def reissue_form_token(self, cookie_token: str) -> str:
        self.calls.append("reissue")
        return self._inner.reissue_form_token(cookie_token)


def _fetch_tokens(client: TestClient) -> tuple[str, str]:
    response = client.get("/form")
    assert response.status_code == 200
    return client.cookies["csrf"], response.json()["csrf_token"]


# ---------------------------------------------------------------------------
# Safe methods
# ---------------------------------------------------------------------------


class TestSafeMethods:
    def test_get_sets_cookie_and_exposes_form_token(self):
        client, protection = _create_app()
        response = client.get("/form")

        assert response.status_code == 200
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("csrf=")
        assert "HttpOnly" in set_cookie
        assert "samesite=lax" in set_cookie.lower()
        assert "Max-Age=3600" in set_cookie

        cookie = client.cookies["csrf"]
        form_token = response.json()["csrf_token"]
        protection.verify_token_pair(cookie, form_token)

    def test_get_with_valid_cookie_reissues_without_rotating(self):
        client, protection = _create_app()
        cookie, first_form = _fetch_tokens(client)

        response = client.get("/form")
        second_form = response.json()["csrf_token"]

        assert "set-cookie" not in response.headers
        assert second_form != first_form
        protection.verify_token_pair(cookie, second_form)

    def test_get_with_invalid_cookie_issues_new_one(self):
        client, protection = _create_app()
        client.cookies.set("csrf", "garbage")
        response = client.get("/form")

        assert "set-cookie" in response.headers
        protection.verify_token_pair(response.cookies["csrf"], response.json()["csrf_token"])

    def test_custom_cookie_name_and_ttl(self):
        client, _ = _create_app(cookie_name="xsrf", ttl_seconds=60)
        response = client.get("/form")
        assert response.headers["set-cookie"].startswith("xsrf=")
        assert "Max-Age=60" in response.headers["set-cookie"]


# ---------------------------------------------------------------------------
# Unsafe methods
# ---------------------------------------------------------------------------


class TestUnsafeMethods:
    def test_post_with_header_token(self):
        client, _ = _create_app()
        _, form_token = _fetch_tokens(client)
        response = client.post("/api", content=b"payload", headers={"X-CSRF-Token": form_token})
        assert response.status_code == 200
        assert response.text == "payload"

    def test_post_with_query_token(self):
        client, _ = _create_app()
        _, form_token = _fetch_tokens(client)
        response = client.put("/api", params={"csrf-token": form_token})
        assert response.status_code == 200

    def test_post_with_urlencoded_form_field(self):
        client, _ = _create_app()
        _, form_token = _fetch_tokens(client)
        response = client.post("/submit", data={"csrf-token": form_token, "name": "order-1"})
        assert response.status_code == 200
        assert response.json() == {"ok": True, "name": "order-1"}

    def test_post_with_multipart_form_field(self):
        client, _ = _create_app()
        _, form_token = _fetch_tokens(client)
        response = client.post(
            "/submit",
            data={"csrf-token": form_token, "name": "upload"},
            files={"file": ("a.txt", b"hello", "text/plain")},
        )
        assert response.status_code == 200
        assert response.json()["name"] == "upload"

    def test_missing_cookie_rejected(self):
        client, protection = _create_app()
        _, form_token = protection.generate_token_pair(300)
        response = client.post("/api", headers={"X-CSRF-Token": form_token})
        assert response.status_code == 403
        assert response.json() == {"error": "CSRF token missing"}

    def test_missing_form_token_rejected(self):
        client, _ = _create_app()
        _fetch_tokens(client)
        response = client.post("/api", content=b"payload")
        assert response.status_code == 403
        assert response.json() == {"error": "CSRF token missing"}

    def test_mismatched_pair_rejected(self):
        client, protection = _create_app()
        _fetch_tokens(client)
        _, foreign_form = protection.generate_token_pair(300)
        response = client.delete("/api", headers={"X-CSRF-Token": foreign_form})
        assert response.status_code == 403
        assert response.json() == {"error": "CSRF token invalid"}

    def test_failure_reason_not_disclosed(self):
        clock = FixedClock(T)
        client, _ = _create_app(protection=DoubleSubmitCsrfProtection(KEY, clock=clock))
        _, form_token = _fetch_tokens(client)
        clock.advance(10_000)
        expired = client.post("/api", headers={"X-CSRF-Token": form_token})
        garbage = client.post("/api", headers={"X-CSRF-Token": "garbage"})
        assert expired.status_code == garbage.status_code == 403
        assert expired.json() == garbage.json()

    def test_bearer_requests_bypass(self):
        client, _ = _create_app()
        response = client.post("/api", content=b"x", headers={"Authorization": "Bearer abc.def.ghi"})
        assert response.status_code == 200

    def test_bearer_bypass_can_be_disabled(self):
        client, _ = _create_app(bearer_bypass=False)
        response = client.post("/api", content=b"x", headers={"Authorization": "Bearer abc.def.ghi"})
        assert response.status_code == 403

    def test_excluded_paths_bypass(self):
        client, _ = _create_app(extra_excludes=("/health",))
        assert client.post("/health", content=b"ok").status_code == 200
        assert client.post("/api", content=b"ok").status_code == 403

    def test_excluded_patterns_from_properties(self):
        client, _ = _create_app(exclude_paths=["/heal*"])
        assert client.post("/health", content=b"ok").status_code == 200
        assert client.post("/api", content=b"ok").status_code == 403

    def test_disabled_middleware_passes_everything(self):
        client, _ = _create_app(enabled=False)
        assert client.post("/api", content=b"ok").status_code == 200


# ---------------------------------------------------------------------------
# Protection port
# ---------------------------------------------------------------------------


class TestProtectionPort:
    def test_any_csrf_protection_implementation_is_accepted(self):
        recorder = _RecordingProtection(DoubleSubmitCsrfProtection(KEY, clock=FixedClock(T)))
        assert isinstance(recorder, CsrfProtection)
        client, _ = _create_app(protection=recorder)

        _, form_token = _fetch_tokens(client)
        client.get("/form")
        response = client.post("/api", content=b"payload", headers={"X-CSRF-Token": form_token})

        assert response.status_code == 200
        assert recorder.calls == ["generate", "reissue", "is_valid"]
