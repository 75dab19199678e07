from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

LEVELS = ("info", "success", "warning", "error")


@dataclass
class NotificationCenter:
    messages: list[dict[str, Any]] = field(default_factory=list)
    limit: int = 20

    def push(self, *, level: str, title: str, message: str, details: dict[str, Any] | None = None) -> dict[str, Any]:
        if level not in LEVELS:
            raise ValueError(f"Unknown notification level: {level}")
        payload = {
            "level": level,
            "title": title,
            "message": message,
            "details": details or {},
        }
        self.messages.append(payload)
        del self.messages[: -self.limit]
        return payload

    def latest(self) -> dict[str, Any] | None:
        return self.messages[-1] if self.messages else None

    def dismiss(self, index: int) -> None:
        if 0 <= index < len(self.messages):
            del self.messages[index]

    def clear(self) -> None:
        self.messages.clear()

    def render(self) -> dict[str, Any]:
        return {"count": len(self.messages), "messages": list(self.messages)}
