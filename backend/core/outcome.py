from dataclasses import dataclass, field
from typing import Generic, List, TypeVar

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """Successful result that may have completed in a degraded way.

    ``warnings`` lists non-fatal problems (an email that never left, a write
    that did not persist) so callers can tell them apart from hard failures.
    """
    value: T
    warnings: List[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)

    def warn(self, message: str) -> None:
        self.warnings.append(message)
