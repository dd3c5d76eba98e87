"""
초안/라이브러리 저장소: JSON 파일 기반.

구조:
    data_root/
    ├── drafts/<draft_id>.json
    └── library/<doc_id>.json

규칙:
- 원자적 쓰기: temp → fsync → rename (중간 상태 없음)
- fsync 실패 시 경고 남기고 계속 진행 (best-effort 내구성)
- 동시 수정은 락으로 직렬화 (스레드: RLock, 프로세스: data_root/.store.lock)
- ID 형식이 아니면 파일 접근하지 않음 (경로 순회 방지)
"""

import json
import logging
import os
import tempfile
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from src.core.ids import is_valid_id
from src.domain.constants import DRAFTS_DIR, LIBRARY_DIR, STORE_LOCK_FILE
from src.domain.errors import ErrorCodes, PolicyRejectError
from src.domain.schemas import Draft, LibraryDoc

logger = logging.getLogger(__name__)

# =============================================================================
# Atomic Write
# =============================================================================


def _fsync_dir(dir_path: Path) -> None:
    """
    디렉토리 fsync (가능한 환경에서).

    rename 후 디렉토리 엔트리까지 내구성을 강화하려면 필요.
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        # O_DIRECTORY 미지원, 권한 문제 등
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_json(path: Path, data: dict[str, Any]) -> None:
    """
    원자적 JSON 쓰기.

    동작:
    - 중간 상태 없음: temp → rename
    - 파일 fsync + 디렉토리 fsync
    - 실패 시 temp 파일 삭제, 기존 파일 보존

    Args:
        path: 저장할 파일 경로
        data: JSON 직렬화할 데이터
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)  # 원자적

        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


def load_json(path: Path) -> dict[str, Any]:
    """
    JSON 파일 로드.

    Raises:
        PolicyRejectError: DRAFT_CORRUPT (JSON 파싱 실패)
    """
    try:
        data: dict[str, Any] = json.loads(path.read_text(encoding="utf-8"))
        return data
    except json.JSONDecodeError as e:
        raise PolicyRejectError(
            ErrorCodes.DRAFT_CORRUPT,
            path=str(path),
            error=str(e),
        ) from e


# =============================================================================
# Draft Store
# =============================================================================


class DraftStore:
    """
    초안/라이브러리 문서 저장소.

    Usage:
        store = DraftStore(Path("data"))
        store.save_draft(draft)
        draft = store.get_draft("drf_0123456789ab")
    """

    LOCK_TIMEOUT = 10.0

    def __init__(self, root: Path):
        """
        Args:
            root: 데이터 루트 디렉터리 (없으면 첫 쓰기 때 생성)
        """
        self.root = root
        self.drafts_dir = root / DRAFTS_DIR
        self.library_dir = root / LIBRARY_DIR
        self._lock = threading.RLock()
        self._process_lock = FileLock(root / STORE_LOCK_FILE, timeout=self.LOCK_TIMEOUT)

    @contextmanager
    def locked(self) -> Iterator[None]:
        """
        read-modify-write 구간 직렬화 (재진입 가능).

        같은 프로세스: RLock, 다른 프로세스: data_root의 락 파일.

        Raises:
            PolicyRejectError: STORE_LOCK_TIMEOUT
        """
        with self._lock:
            self.root.mkdir(parents=True, exist_ok=True)
            try:
                self._process_lock.acquire()
            except Timeout as e:
                raise PolicyRejectError(
                    ErrorCodes.STORE_LOCK_TIMEOUT,
                    root=str(self.root),
                    timeout=self.LOCK_TIMEOUT,
                ) from e
            try:
                yield
            finally:
                self._process_lock.release()

    # --- drafts ---

    def _draft_path(self, draft_id: str) -> Path | None:
        if not is_valid_id(draft_id):
            return None
        return self.drafts_dir / f"{draft_id}.json"

    def save_draft(self, draft: Draft) -> Draft:
        path = self._draft_path(draft.draft_id)
        if path is None:
            raise PolicyRejectError(ErrorCodes.INVALID_REQUEST, draft_id=draft.draft_id)
        with self.locked():
            atomic_write_json(path, draft.to_dict())
        return draft

    def get_draft(self, draft_id: str) -> Draft | None:
        path = self._draft_path(draft_id)
        if path is None or not path.exists():
            return None
        return Draft.from_dict(load_json(path))

    def update_draft(self, draft_id: str, mutate: Callable[[Draft], None]) -> Draft | None:
        """
        초안 읽기 → 수정 → 저장 (락 안에서).

        Args:
            draft_id: 초안 ID
            mutate: 초안을 제자리에서 수정하는 함수

        Returns:
            저장된 초안 (없으면 None)
        """
        with self.locked():
            draft = self.get_draft(draft_id)
            if draft is None:
                return None
            mutate(draft)
            return self.save_draft(draft)

    # --- library ---

    def _doc_path(self, doc_id: str) -> Path | None:
        if not is_valid_id(doc_id):
            return None
        return self.library_dir / f"{doc_id}.json"

    def save_library_doc(self, doc: LibraryDoc) -> LibraryDoc:
        path = self._doc_path(doc.doc_id)
        if path is None:
            raise PolicyRejectError(ErrorCodes.INVALID_REQUEST, doc_id=doc.doc_id)
        with self.locked():
            atomic_write_json(path, doc.to_dict())
        return doc

    def get_library_doc(self, doc_id: str) -> LibraryDoc | None:
        path = self._doc_path(doc_id)
        if path is None or not path.exists():
            return None
        return LibraryDoc.from_dict(load_json(path))

    def list_library(self, tool_id: str | None = None) -> list[LibraryDoc]:
        """
        라이브러리 문서 목록 (최신순).

        깨진 파일은 경고 로그 후 건너뜀.
        """
        if not self.library_dir.exists():
            return []

        docs: list[LibraryDoc] = []
        for path in self.library_dir.glob("doc_*.json"):
            try:
                doc = LibraryDoc.from_dict(load_json(path))
            except (PolicyRejectError, KeyError, ValueError) as e:
                logger.warning(f"Skipping unreadable library doc {path.name}: {e}")
                continue
            if tool_id is None or doc.tool_id.value == tool_id:
                docs.append(doc)

        # 최신순, 같은 시각이면 doc_id 역순 (결정적 순서)
        docs.sort(key=lambda d: (d.created_at, d.doc_id), reverse=True)
        return docs
