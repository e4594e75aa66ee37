"""Application settings read from the environment."""
import os
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from loguru import logger

from gymdesk.core.constants import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_PROBE_TABLE,
    DEFAULT_RETEST_INTERVAL,
    DEFAULT_RETRY_DELAY,
    SUPABASE_KEY_ENV,
    SUPABASE_URL_ENV,
)


@dataclass(frozen=True)
class StoreSettings:
    """Store endpoint, access key and monitor tuning, read once at start."""

    url: str = ""
    key: str = ""
    probe_table: str = DEFAULT_PROBE_TABLE
    retest_interval: float = DEFAULT_RETEST_INTERVAL
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "StoreSettings":
        """
        Build settings from the process environment.

        Missing URL or key is a valid configuration (offline mode), not an error.
        Malformed or out-of-range tuning values fall back to their defaults.
        """
        env = os.environ if environ is None else environ
        return cls(
            url=env.get(SUPABASE_URL_ENV, "").strip(),
            key=env.get(SUPABASE_KEY_ENV, "").strip(),
            probe_table=env.get("GYMDESK_PROBE_TABLE", "").strip() or DEFAULT_PROBE_TABLE,
            retest_interval=_read(env, "GYMDESK_RETEST_INTERVAL", float, DEFAULT_RETEST_INTERVAL, lambda v: v > 0),
            max_attempts=_read(env, "GYMDESK_MAX_ATTEMPTS", int, DEFAULT_MAX_ATTEMPTS, lambda v: v >= 1),
            retry_delay=_read(env, "GYMDESK_RETRY_DELAY", float, DEFAULT_RETRY_DELAY, lambda v: v >= 0),
        )

    @property
    def has_url(self) -> bool:
        return bool(self.url)

    @property
    def has_key(self) -> bool:
        return bool(self.key)

    def diagnostics(self) -> dict:
        """Environment check shown in the connection panel. Never exposes the key."""
        return {
            SUPABASE_URL_ENV: "set" if self.has_url else "missing",
            SUPABASE_KEY_ENV: "set" if self.has_key else "missing",
            "url": self.url,
        }


def _read(env: Mapping[str, str], name: str, convert: Callable, default, valid: Callable[[object], bool]):
    raw = env.get(name)
    if raw in (None, ""):
        return default

    try:
        value = convert(raw)
    except ValueError:
        value = None

    if value is None or not valid(value):
        logger.warning(f"[Settings] Ignoring invalid {name}={raw!r}, using {default}")
        return default
    return value
