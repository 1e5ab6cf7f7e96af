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
"""Tests for Config — file loading, env overrides, placeholders, binding."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pytest
from pydantic import BaseModel, Field

from pyfly_csrf.core.config import Config, config_properties


class TestConfig:
    def test_get_nested_value(self):
        config = Config({"database": {"pool": {"size": 10}}})
        assert config.get("database.pool.size") == 10

    def test_get_with_default(self):
        assert Config({}).get("missing.key", "default") == "default"

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("PYFLY_CSRF_TTL_SECONDS", "60")
        config = Config({"pyfly": {"csrf": {"ttl_seconds": 3600}}})
        assert config.get("pyfly.csrf.ttl_seconds") == "60"

    def test_placeholder_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("APP_CSRF_KEY", "from-env")
        config = Config({"pyfly": {"csrf": {"secret_key": "${APP_CSRF_KEY}"}}})
        assert config.get("pyfly.csrf.secret_key") == "from-env"

    def test_placeholder_default(self):
        config = Config({"a": "${NOT_SET_ANYWHERE_123:fallback}"})
        assert config.get("a") == "fallback"

    def test_placeholder_config_reference(self):
        config = Config({"a": "${b.c}", "b": {"c": "value"}})
        assert config.get("a") == "value"

    def test_unresolvable_placeholder(self):
        with pytest.raises(ValueError, match="Cannot resolve placeholder"):
            Config({"a": "${NOT_SET_ANYWHERE_123}"}).get("a")

    def test_circular_placeholder(self):
        with pytest.raises(ValueError, match="Max recursion depth"):
            Config({"a": "${b}", "b": "${a}"}).get("a")

    def test_get_section(self):
        config = Config({"pyfly": {"csrf": {"cookie_name": "c"}}})
        assert config.get_section("pyfly.csrf") == {"cookie_name": "c"}
        assert config.get_section("pyfly.missing") == {}


class TestConfigFiles:
    def test_defaults_resource(self):
        config = Config.defaults()
        assert config.get("pyfly.csrf.cookie_name") == "csrf"
        assert config.get("pyfly.csrf.header_name") == "X-CSRF-Token"

    def test_load_yaml_over_defaults(self, tmp_path: Path):
        path = tmp_path / "pyfly.yaml"
        path.write_text("pyfly:\n  csrf:\n    cookie_name: my-csrf\n")
        config = Config.from_file(path)
        assert config.get("pyfly.csrf.cookie_name") == "my-csrf"
        assert config.get("pyfly.csrf.form_field") == "csrf-token"
        assert config.loaded_sources[-1] == str(path)

    def test_load_toml(self, tmp_path: Path):
        path = tmp_path / "pyfly.toml"
        path.write_text('[pyfly.csrf]\nttl_seconds = 120\n')
        assert Config.from_file(path).get("pyfly.csrf.ttl_seconds") == 120

    def test_profile_overlay(self, tmp_path: Path):
        (tmp_path / "pyfly.yaml").write_text("pyfly:\n  csrf:\n    ttl_seconds: 100\n")
        (tmp_path / "pyfly-prod.yaml").write_text("pyfly:\n  csrf:\n    ttl_seconds: 200\n")
        config = Config.from_file(tmp_path / "pyfly.yaml", active_profiles=["prod"])
        assert config.get("pyfly.csrf.ttl_seconds") == 200

    def test_missing_file_keeps_defaults(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.get("pyfly.csrf.cookie_name") == "csrf"

    def test_without_defaults(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml", load_defaults=False)
        assert config.to_dict() == {}


class TestConfigBinding:
    def test_bind_dataclass(self):
        @config_properties(prefix="database")
        @dataclass
        class DatabaseConfig:
            url: str = "sqlite:///default.db"
            pool_size: int = 5

        config = Config({"database": {"url": "postgresql://localhost/mydb", "pool_size": 20, "extra": 1}})
        bound = config.bind(DatabaseConfig)
        assert bound.url == "postgresql://localhost/mydb"
        assert bound.pool_size == 20

    def test_bind_dataclass_coerces_env_strings(self, monkeypatch: pytest.MonkeyPatch):
        @config_properties(prefix="pyfly.sample")
        @dataclass
        class Sample:
            size: int = 1
            on: bool = False

        monkeypatch.setenv("PYFLY_SAMPLE_SIZE", "7")
        monkeypatch.setenv("PYFLY_SAMPLE_ON", "yes")
        bound = Config({}).bind(Sample)
        assert bound.size == 7
        assert bound.on is True

    def test_bind_pydantic(self):
        @config_properties(prefix="pyfly.sample")
        class Sample(BaseModel):
            port: int = Field(default=8080, ge=1, le=65535)

        assert Config({"pyfly": {"sample": {"port": 9000}}}).bind(Sample).port == 9000

    def test_bind_pydantic_validation_error(self):
        @config_properties(prefix="pyfly.sample")
        class Sample(BaseModel):
            port: int = Field(default=8080, ge=1, le=65535)

        with pytest.raises(ValueError, match="Configuration validation failed"):
            Config({"pyfly": {"sample": {"port": 0}}}).bind(Sample)

    def test_bind_requires_decorator(self):
        @dataclass
        class Plain:
            x: int = 1

        with pytest.raises(ValueError, match="not decorated"):
            Config({}).bind(Plain)
