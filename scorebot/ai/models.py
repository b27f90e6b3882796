"""Data models for the local LLM adviser."""

import time
from dataclasses import dataclass, field


@dataclass
class AIMetrics:
    """Tracks adviser usage for a session."""

    model_name: str = ""
    total_tokens: int = 0
    total_calls: int = 0
    failed_calls: int = 0
    total_response_time_ms: float = 0
    session_start: float = field(default_factory=time.time)

    @property
    def avg_response_time_ms(self) -> float:
        """Average response time across successful calls."""
        if self.total_calls == 0:
            return 0
        return self.total_response_time_ms / self.total_calls

    def record_call(self, tokens: int, response_time_ms: float) -> None:
        """Record a completed call."""
        self.total_tokens += tokens
        self.total_calls += 1
        self.total_response_time_ms += response_time_ms

    def record_failure(self) -> None:
        self.failed_calls += 1

    def reset(self) -> None:
        self.total_tokens = 0
        self.total_calls = 0
        self.failed_calls = 0
        self.total_response_time_ms = 0
        self.session_start = time.time()


@dataclass(frozen=True)
class AdviserVerdict:
    """Parsed adviser reply."""

    long_confidence: float  # 0-100
    reasoning: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "AdviserVerdict":
        """
        Build from the adviser's JSON reply.

        Raises:
            KeyError: If long_confidence is missing
            ValueError: If long_confidence is not a number in 0-100
        """
        value = data["long_confidence"]
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError(f"long_confidence must be a number, got {value!r}")
        value = float(value)
        if not 0 <= value <= 100:
            raise ValueError(f"long_confidence out of range: {value}")
        return cls(long_confidence=value, reasoning=str(data.get("reasoning", "")))
