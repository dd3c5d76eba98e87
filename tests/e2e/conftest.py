"""
E2E 테스트용 FastAPI 클라이언트 설정.

- lifespan 실행 후 app.state.draft_service를 임시 저장소 + FakeProvider로 교체
- LLM 실제 호출 없음
"""

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from src.app.main import app
from src.app.services.drafts import DraftService
from src.core.store import DraftStore


@pytest.fixture
def client(store: DraftStore, fake_provider) -> Generator[TestClient, None, None]:
    """FastAPI TestClient (임시 data_root 사용)."""
    with TestClient(app) as client:
        client.app.state.draft_service = DraftService(store, provider=fake_provider)
        yield client


@pytest.fixture
def use_provider(client: TestClient, store: DraftStore):
    """지정한 provider로 DraftService 교체."""

    def _use(provider) -> DraftService:
        service = DraftService(store, provider=provider)
        client.app.state.draft_service = service
        return service

    return _use


@pytest.fixture
def create_draft(client: TestClient):
    """POST /v1/tools/{tool_id}/drafts → draft dict."""

    def _create(tool_id: str, inputs: dict, title: str = "테스트 문서") -> dict:
        response = client.post(
            f"/v1/tools/{tool_id}/drafts",
            json={"title": title, "inputs": inputs},
        )
        assert response.status_code == 201, response.text
        draft: dict = response.json()["draft"]
        return draft

    return _create
