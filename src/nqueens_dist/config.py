from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from nqueens_dist.errors import ParameterError


class Backend(str, Enum):
    PROCESS = "process"
    THREAD = "thread"


class RunConfig(BaseModel):
    """Parameters of one distributed run."""

    model_config = ConfigDict(frozen=True)

    n: int = Field(ge=1, description="Board size")
    k: int = Field(ge=0, description="Split level: rows the master places before handing off")
    workers: int = Field(default=1, ge=1)
    backend: Backend = Backend.PROCESS
    poll_interval: float = Field(default=0.01, gt=0, description="Worker idle wait in seconds")
    show_progress: bool = False
    output: bool = False
    log_level: str = "WARNING"
    json_logs: bool = False

    @model_validator(mode="after")
    def check_split_level(self) -> "RunConfig":
        if self.k > self.n:
            raise ValueError(f"split level k={self.k} exceeds board size n={self.n}")
        return self

    @classmethod
    def build(cls, **values: Any) -> "RunConfig":
        """Validate values, raising ParameterError instead of pydantic's ValidationError."""
        try:
            return cls(**values)
        except ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}" for err in e.errors()
            )
            raise ParameterError(details) from e


def validate_params(n: int, k: int) -> None:
    """Reject problem parameters the protocol cannot run with."""
    if n <= 0:
        raise ParameterError(f"board size must be at least 1, got n={n}")
    if k < 0 or k > n:
        raise ParameterError(f"split level must satisfy 0 <= k <= n, got k={k}, n={n}")
