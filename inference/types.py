from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Literal

ModelStatus = Literal["success", "recoverable_error", "fatal_error"]
Role = Literal["system", "user", "assistant"]


@dataclass
class ModelRequest:
    messages: List[Dict[str, str]]     # ordered [{"role": ..., "content": ...}]
    max_tokens: int = 150
    temperature: Optional[float] = None
    timeout_s: Optional[int] = 30
    trace_id: Optional[str] = None


@dataclass
class ModelResponse:
    status: ModelStatus
    output: Optional[str] = None       # None when the provider returned no content
    error_type: Optional[str] = None   # timeout | rate_limited | backend_unavailable
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "success"
