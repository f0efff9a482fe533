"""
Generic result container for all carstats computations.

The Result class provides a standardized envelope that all domain-specific
results use: fits, model comparisons and selection tables share the same
timing and warning plumbing while defining their own parameter payloads.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (method, rank, tolerance)
    - timing is optional (don't burden unit tests)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific parameters (coefficients, F statistics, etc.)
        info: Structured metadata (method, rank, tolerance)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the backend that produced this result
        warnings: Non-fatal issues encountered during computation

    Examples:
        >>> Result(
        ...     params=LinearParams(...),
        ...     info={'method': 'qr', 'rank': 3},
        ...     timing={'total_seconds': 0.01},
        ...     backend_name='cpu_qr'
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
