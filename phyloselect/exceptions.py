"""
Custom exceptions for phyloselect.
"""

from __future__ import annotations
import logging
from typing import Any, NoReturn

logger = logging.getLogger(__name__)


class PhyloSelectError(Exception):
    """Base exception for model selection errors."""

    pass


class InvalidMetricKindError(PhyloSelectError, ValueError):
    """Raised when a distance cache is built for an unsupported distance type."""

    @staticmethod
    def raise_unsupported(distance_type: Any) -> NoReturn:
        """
        Raises an InvalidMetricKindError naming the rejected identifier.

        Args:
            distance_type: The identifier that matched no known metric

        Raises:
            InvalidMetricKindError: Always raised
        """
        message = f"Unsupported distance type: {distance_type!r}"
        logger.error(message)
        raise InvalidMetricKindError(message)


class InvalidScoreInputError(PhyloSelectError, ValueError):
    """Raised when a selection score cannot be computed from its inputs."""

    pass


class NewickParseError(PhyloSelectError, ValueError):
    """Raised when a Newick string is malformed."""

    pass
