"""Run Metrics - Counters for API usage and fallbacks across one run."""

import time
from dataclasses import dataclass, field, asdict


@dataclass
class Metrics:
    """Mutable accumulator owned by the caller and passed into the summarizer.

    Values are reporting data only; nothing branches on them.
    """
    api_calls: int = 0
    total_tokens: int = 0
    prompt_tokens: int = 0
    completion_tokens: int = 0
    rule_based_fallbacks: int = 0
    rule_based_summaries: int = 0
    errors: int = 0
    commits_processed: int = 0
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None

    def reset(self) -> None:
        """Zero every counter and restart the clock."""
        fresh = Metrics()
        for name, value in asdict(fresh).items():
            setattr(self, name, value)

    def record_completion(self, prompt_tokens: int, completion_tokens: int) -> None:
        self.api_calls += 1
        self.prompt_tokens += prompt_tokens
        self.completion_tokens += completion_tokens
        self.total_tokens += prompt_tokens + completion_tokens

    def record_fallback(self) -> None:
        self.rule_based_fallbacks += 1
        self.errors += 1

    def finish(self) -> None:
        self.end_time = time.time()

    @property
    def duration(self) -> float:
        end = self.end_time if self.end_time is not None else time.time()
        return max(0.0, end - self.start_time)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop('start_time')
        data.pop('end_time')
        data['duration_seconds'] = round(self.duration, 2)
        return data
