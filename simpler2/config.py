"""Client configuration, loaded once and never mutated."""

import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from .errors import R2ConfigError

ACCESS_KEY_ID_VAR = 'R2_ACCESS_KEY_ID'
SECRET_ACCESS_KEY_VAR = 'R2_SECRET_ACCESS_KEY'
SESSION_TOKEN_VAR = 'R2_SESSION_TOKEN'

DEFAULT_TIMEOUT = 5


@dataclass(frozen=True)
class R2Config:
    access_key_id: str
    secret_key: str
    endpoint: str
    session_token: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.endpoint:
            raise R2ConfigError('An R2 endpoint is required')
        if self.timeout <= 0:
            raise R2ConfigError(f"Timeout must be positive, got {self.timeout!r}")

    def __repr__(self) -> str:
        # Keep the secret out of logs and tracebacks.
        return (
            f"R2Config(access_key_id={self.access_key_id!r}, endpoint={self.endpoint!r}, "
            f"session_token={'***' if self.session_token else None}, timeout={self.timeout!r})"
        )

    @classmethod
    def from_environment(
            cls,
            endpoint: str,
            environ: Optional[Mapping[str, str]] = None,
            timeout: float = DEFAULT_TIMEOUT
    ) -> 'R2Config':
        """
        Read credentials from ``R2_ACCESS_KEY_ID``, ``R2_SECRET_ACCESS_KEY``
        and the optional ``R2_SESSION_TOKEN``.
        """
        env = os.environ if environ is None else environ
        missing = [name for name in (ACCESS_KEY_ID_VAR, SECRET_ACCESS_KEY_VAR) if name not in env]
        if missing:
            raise R2ConfigError(f"Missing environment variable(s): {', '.join(missing)}")
        return cls(
            access_key_id=env[ACCESS_KEY_ID_VAR],
            secret_key=env[SECRET_ACCESS_KEY_VAR],
            endpoint=endpoint,
            session_token=env.get(SESSION_TOKEN_VAR),
            timeout=timeout,
        )

    def with_timeout(self, timeout: float) -> 'R2Config':
        return replace(self, timeout=timeout)
