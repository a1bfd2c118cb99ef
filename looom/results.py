from dataclasses import dataclass
from typing import Generic, Literal, Optional, TypeVar

T = TypeVar("T")

# live: answered by the backend
# fallback: backend unavailable or failing, static data returned
# simulated: demo-mode write, nothing persisted
Source = Literal["live", "fallback", "simulated"]


@dataclass
class Fetched(Generic[T]):
    value: T
    source: Source
    error: Optional[str] = None
