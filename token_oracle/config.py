"""Default engine flags"""
import os

ENGINE_CONFIG = {
    "human_readable": True,     # both engines
    "self_describing": True,    # decoder only; False → decode_any is rejected
}

_ENV_PREFIX = "TOKEN_ORACLE_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def resolve_flag(name: str, override=None) -> bool:
    """Explicit argument > TOKEN_ORACLE_<NAME> env var > ENGINE_CONFIG."""
    if override is not None:
        return bool(override)
    raw = os.environ.get(_ENV_PREFIX + name.upper())
    if raw is not None:
        value = raw.strip().lower()
        if value in _TRUE:
            return True
        if value in _FALSE:
            return False
        raise ValueError(f"{_ENV_PREFIX + name.upper()}={raw!r} is not a boolean")
    return ENGINE_CONFIG[name]
