"""Engine API JWT secret shared by the execution and consensus clients"""

import re
import secrets
from pathlib import Path

SECRET_BYTES = 32
_HEX_RE = re.compile(r"[0-9a-f]{64}")


def generate_secret() -> str:
    """Return 32 random bytes as 64 lowercase hex characters"""
    return secrets.token_hex(SECRET_BYTES)


def is_valid_secret(value: str) -> bool:
    """Exactly 64 lowercase hex characters, nothing else in the file"""
    return bool(_HEX_RE.fullmatch(value))


def read_secret(path: Path) -> str:
    return Path(path).read_text()
