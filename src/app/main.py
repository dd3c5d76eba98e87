"""
FastAPI 애플리케이션 진입점.

실행:
- 개발: uvicorn src.app.main:app --reload
- 프로덕션: uvicorn src.app.main:app
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from fastapi import FastAPI

from src.app.providers.anthropic import ClaudeProvider
from src.app.providers.base import LLMProvider, ProviderError
from src.app.routes import drafts, library
from src.app.services.drafts import DraftService
from src.core.store import DraftStore
from src.domain.constants import DEFAULT_FIELD_MAX_TOKENS

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent.parent

# =============================================================================
# Configuration
# =============================================================================


def load_config(config_path: Path | None = None) -> dict:
    """설정 파일 로드."""
    if config_path is None:
        # 프로젝트 루트의 default.yaml
        config_path = PROJECT_ROOT / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path, encoding="utf-8") as f:
        data: dict[Any, Any] = yaml.safe_load(f) or {}
        return data


def build_provider(config: dict) -> LLMProvider | None:
    """
    설정으로 LLM Provider 생성.

    API 키가 없으면 None (서버는 뜨고, 필드 생성은 fallback 문구로 처리).
    """
    try:
        return ClaudeProvider.from_config(config)
    except ProviderError as e:
        logger.warning(f"LLM provider unavailable, generation will use fallback text: {e}")
        return None


def build_draft_service(config: dict, provider: LLMProvider | None) -> DraftService:
    """설정으로 DraftService 구성."""
    data_root = Path(config.get("paths", {}).get("data_root", "data"))
    if not data_root.is_absolute():
        data_root = PROJECT_ROOT / data_root

    return DraftService(
        store=DraftStore(data_root),
        provider=provider,
        max_tokens=config.get("ai", {}).get("llm", {}).get(
            "max_tokens", DEFAULT_FIELD_MAX_TOKENS
        ),
        include_appendix_tables=config.get("render", {}).get(
            "include_appendix_tables", True
        ),
    )


# =============================================================================
# Lifespan
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    애플리케이션 생명주기 관리.

    시작 시: .env 로드, 설정 로드, Provider/저장소 초기화
    """
    # Startup (.env는 이미 설정된 환경변수를 덮어쓰지 않음)
    load_dotenv(PROJECT_ROOT / ".env")
    app.state.config = load_config()
    app.state.provider = build_provider(app.state.config)
    app.state.draft_service = build_draft_service(app.state.config, app.state.provider)

    yield


# =============================================================================
# App Instance
# =============================================================================

app = FastAPI(
    title="Aftercare Docs",
    description="초등돌봄교실 운영계획서/운영결과보고 초안 작성 (입력값 기반 AI 서술)",
    version="0.1.0",
    lifespan=lifespan,
)


# =============================================================================
# Routes
# =============================================================================

app.include_router(drafts.api_router, prefix="/v1", tags=["Drafts API"])
app.include_router(library.api_router, prefix="/v1/library", tags=["Library API"])


@app.get("/health")
async def health() -> dict[str, str]:
    """헬스 체크."""
    return {"status": "ok"}


# =============================================================================
# CLI Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.app.main:app",
        host="127.0.0.1",
        port=8000,
        reload=True,
    )
