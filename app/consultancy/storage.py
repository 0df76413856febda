from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class StorageError(RuntimeError):
    pass


@dataclass(frozen=True)
class LocalStorage:
    root: Path

    def path(self, key: str) -> Path:
        safe_key = key.lstrip("/").replace("\\", "/")
        p = (self.root / safe_key).resolve()
        if not p.is_relative_to(self.root.resolve()):
            raise StorageError(f"Storage key escapes upload root: {key!r}")
        return p

    def put_bytes(self, key: str, data: bytes) -> Path:
        p = self.path(key)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_bytes(data)
        except OSError as e:
            raise StorageError(f"Could not write {key!r}: {e}") from e
        return p

    def exists(self, key: str) -> bool:
        return self.path(key).exists()

    def delete(self, key: str) -> None:
        self.path(key).unlink(missing_ok=True)


def storage_from_config(config: dict) -> LocalStorage:
    return LocalStorage(root=Path(config["UPLOAD_DIR"]))
