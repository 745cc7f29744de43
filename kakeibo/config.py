"""Environment-driven configuration shared by the API and the console."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .debounce import DEFAULT_DELAY
from .storage import DEFAULT_QUOTA_BYTES


def _split_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@dataclass(frozen=True)
class Config:
    data_dir: Path = Path("data")
    env: str = "prod"
    allowed_origins: List[str] = field(default_factory=list)
    storage_quota: Optional[int] = DEFAULT_QUOTA_BYTES
    debounce_delay: float = DEFAULT_DELAY

    @property
    def is_dev(self) -> bool:
        return self.env in {"dev", "development"}

    @classmethod
    def from_env(cls) -> "Config":
        quota = os.getenv("KAKEIBO_STORAGE_QUOTA")
        debounce_ms = os.getenv("KAKEIBO_DEBOUNCE_MS")
        return cls(
            data_dir=Path(os.getenv("KAKEIBO_DATA_DIR", "data")),
            env=os.getenv("KAKEIBO_ENV", "prod").lower(),
            allowed_origins=_split_origins(os.getenv("KAKEIBO_ALLOWED_ORIGINS")),
            # 0 disables the quota check.
            storage_quota=(int(quota) or None) if quota else DEFAULT_QUOTA_BYTES,
            debounce_delay=int(debounce_ms) / 1000 if debounce_ms else DEFAULT_DELAY,
        )
