"""
Challenge record model.

One record per issued token. Stored as JSON (not pickle) in Redis, or held
directly by the in-memory store.

used is False until the token is consumed; consumption deletes the record,
so a record observed with used=True only exists inside a store's critical
section.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass


@dataclass
class ChallengeRecord:
    token: str
    answer: str
    issued_at: int  # epoch milliseconds, equal to the timestamp embedded in token
    used: bool = False

    def age_ms(self, now: int) -> int:
        return now - self.issued_at

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_json(cls, raw: str) -> "ChallengeRecord":
        return cls(**json.loads(raw))
