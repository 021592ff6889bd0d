import hashlib
from dataclasses import dataclass
from datetime import datetime


def hash_caller_address(address: str, salt: str = "") -> str:
    return hashlib.sha256((salt + address).encode("utf-8")).hexdigest()


def _single_line(value: str) -> str:
    return " ".join(value.splitlines())


@dataclass(frozen=True)
class Provenance:
    """Who submitted an artifact and when; written at the top of the artifact body."""

    client_id: str
    caller_hash: str
    captured_at: datetime

    def render(self, comment: str = "//") -> str:
        lines = [
            f"{comment} ClientID: {_single_line(self.client_id)}",
            f"{comment} IPHash: {self.caller_hash}",
            f"{comment} Start: {self.captured_at.isoformat(timespec='seconds')}",
        ]
        return "\n".join(lines) + "\n\n"
