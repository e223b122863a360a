"""Shared test fixtures for the typeschema test suite."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import pytest

from typeschema.config import Config
from typeschema.registry.registry import ModelRegistry


class StaticCommentLookup:
    """Comment lookup backed by a fixed mapping, counting namespace requests."""

    def __init__(self, comments: Mapping[str, str] | None = None) -> None:
        self.comments = dict(comments or {})
        self.calls: list[str] = []

    def get(self, namespace: str) -> Mapping[str, str]:
        self.calls.append(namespace)
        return self.comments


@pytest.fixture
def module_namespace(request: pytest.FixtureRequest) -> str:
    """The module name of the requesting test module, used as a stripped namespace."""
    return request.module.__name__


@pytest.fixture
def registry(module_namespace: str) -> ModelRegistry:
    """Returns a ModelRegistry producing unqualified names for the test module's models."""
    return ModelRegistry(strip_namespaces=[module_namespace])


@pytest.fixture
def static_comments() -> StaticCommentLookup:
    return StaticCommentLookup()


@pytest.fixture
def config_file(tmp_path: Path):
    """Factory writing YAML text to a temporary config file."""

    def _write(text: str) -> Path:
        path = tmp_path / "typeschema.yaml"
        path.write_text(text)
        return path

    return _write


@pytest.fixture
def sample_config() -> Config:
    data: dict[str, Any] = {
        "registry": {"strip_namespaces": ["myapp.models"], "ref_prefix": "#/definitions/"},
        "document": {"title": "Pet Store", "version": "1.2.3"},
    }
    return Config(data)
