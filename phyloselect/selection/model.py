from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from phyloselect.tree import Node


@runtime_checkable
class SupportsLikelihood(Protocol):
    """Anything a selection score can be computed from."""

    log_likelihood: float
    parameter_count: int


@dataclass
class Model:
    """Candidate substitution model with its optimised likelihood and tree."""

    name: str
    log_likelihood: float
    parameter_count: int
    tree: Optional[Node] = None
    values: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return self.name
