"""
test_main.py - 앱 구성 테스트

DoD:
- default.yaml 로드, 파일 없음/빈 파일 → {}
- API 키 없으면 provider None (서버는 뜸, 생성은 fallback)
- data_root 상대 경로는 프로젝트 루트 기준
"""

from pathlib import Path

import pytest

from src.app.main import PROJECT_ROOT, build_draft_service, build_provider, load_config
from src.app.providers.anthropic import ClaudeProvider


@pytest.fixture
def no_env_keys(monkeypatch):
    monkeypatch.delenv("MY_ANTHROPIC_KEY", raising=False)
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)


class TestLoadConfig:
    """load_config 함수 테스트."""

    def test_default_yaml(self):
        config = load_config()

        assert config["ai"]["llm"]["model"] == "claude-sonnet-4-5"
        assert config["render"]["include_appendix_tables"] is True

    def test_missing_file(self, tmp_path: Path):
        assert load_config(tmp_path / "nope.yaml") == {}

    def test_empty_file(self, tmp_path: Path):
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path) == {}


class TestBuildProvider:
    """build_provider 함수 테스트."""

    def test_without_key_returns_none(self, no_env_keys, default_config):
        assert build_provider(default_config) is None

    def test_with_key(self, monkeypatch, default_config):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")

        provider = build_provider(default_config)

        assert isinstance(provider, ClaudeProvider)
        assert provider.model == "claude-sonnet-4-5"


class TestBuildDraftService:
    """build_draft_service 함수 테스트."""

    def test_relative_data_root(self):
        service = build_draft_service({"paths": {"data_root": "data"}}, None)

        assert service.store.root == PROJECT_ROOT / "data"
        assert service.provider is None

    def test_absolute_data_root(self, tmp_path: Path):
        service = build_draft_service({"paths": {"data_root": str(tmp_path)}}, None)

        assert service.store.root == tmp_path

    def test_settings_from_config(self, tmp_path: Path):
        config = {
            "ai": {"llm": {"max_tokens": 600}},
            "paths": {"data_root": str(tmp_path)},
            "render": {"include_appendix_tables": False},
        }

        service = build_draft_service(config, None)

        assert service.max_tokens == 600
        assert service.include_appendix_tables is False

    def test_defaults(self):
        service = build_draft_service({}, None)

        assert service.max_tokens == 1200
        assert service.include_appendix_tables is True
