import os
import re
from pathlib import Path
from typing import Dict, Optional
from uuid import uuid4

from chat_core.config.settings import settings
from chat_core.domain.conversation import BlobStore
from chat_core.domain.exceptions import BusinessError, PersistenceCorruptError

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class FileBlobStore(BlobStore):
    """每个 key 对应 storage_root 下的一个 JSON 文件，写入时先写临时文件再原子替换。"""

    def __init__(self, root: str | Path | None = None):
        self._root = Path(root or settings.storage_root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise PersistenceCorruptError(str(e), key=key)
        except OSError as e:
            raise BusinessError(code="STORE_READ_ERROR", message=str(e), key=key)

    def put(self, key: str, value: str) -> None:
        path = self._path(key)
        tmp_path = self._root / f"{key}.{uuid4().hex}.json.tmp"
        try:
            tmp_path.write_text(value, encoding="utf-8")
            os.replace(tmp_path, path)
        except OSError as e:
            tmp_path.unlink(missing_ok=True)
            raise BusinessError(code="STORE_WRITE_ERROR", message=str(e), key=key)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise BusinessError(code="STORE_BAD_KEY", message=f"Invalid storage key: {key!r}")
        return self._root / f"{key}.json"


class MemoryBlobStore(BlobStore):
    """进程内存储，不落盘；用于测试与临时会话。"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        self._data[key] = value
