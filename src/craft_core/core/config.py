from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from .errors import ConfigVersionError


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the SQLAlchemy ``DateTime`` columns store."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class CoreConfig:
    REQUIRED_VERSION = 1

    verify_expire_delay: float = 120.0
    verify_check_delay: float = 1.0
    warmup_check_delay: float = 1.0
    code_length: int = 6
    code_alphabet: str = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
    submit_cooldown: float = 3.0

    def __post_init__(self) -> None:
        for name in ("verify_expire_delay", "verify_check_delay", "warmup_check_delay"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.submit_cooldown < 0:
            raise ValueError("submit_cooldown must not be negative")
        if self.code_length < 6:
            raise ValueError("code_length must be at least 6")
        if len(set(self.code_alphabet)) < 16:
            raise ValueError("code_alphabet needs at least 16 distinct characters")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "CoreConfig":
        """Build a config from an already-parsed ``config.yml`` mapping.

        Unknown keys (discord token, irc settings, prefixes) belong to other
        components and are ignored here.
        """
        data = dict(data or {})
        version = data.get("configVersion")
        if version is not None and int(version) != cls.REQUIRED_VERSION:
            raise ConfigVersionError(
                f"config version {version} does not match required version {cls.REQUIRED_VERSION}"
            )

        kwargs: dict[str, Any] = {}
        float_keys = {
            "verifyExpireDelay": "verify_expire_delay",
            "verifyCheckDelay": "verify_check_delay",
            "warmupCheckDelay": "warmup_check_delay",
            "verifySubmitCooldown": "submit_cooldown",
        }
        for raw_key, field_name in float_keys.items():
            if data.get(raw_key) is not None:
                kwargs[field_name] = float(data[raw_key])
        if data.get("verifyCodeLength") is not None:
            kwargs["code_length"] = int(data["verifyCodeLength"])
        return cls(**kwargs)
