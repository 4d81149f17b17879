from __future__ import annotations

import hmac
import os

from fastapi import Header, HTTPException, status


class ApiKeyAuth:
    """``X-API-Key`` check; an empty key set leaves the API open for local runs."""

    def __init__(self, valid_keys: set[str]) -> None:
        self.valid_keys = valid_keys

    @classmethod
    def from_env(cls) -> "ApiKeyAuth":
        return cls(set(filter(None, os.getenv("API_KEYS", "").split(","))))

    def is_valid(self, key: str | None) -> bool:
        if not key:
            return False
        return any(hmac.compare_digest(key, valid) for valid in self.valid_keys)

    def __call__(self, x_api_key: str | None = Header(default=None)) -> None:
        if not self.valid_keys:
            return
        if not self.is_valid(x_api_key):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
