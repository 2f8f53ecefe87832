"""
Input validation utilities for circuit graph layout.

Provides the exception hierarchy and centralized validation functions for
circuit topology, canvas size and configuration values. Raises descriptive
exceptions on invalid input.
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence

from .types import Branch, ElectricalNode


class ValidationError(ValueError):
    """Base exception for layout validation errors."""

    pass


class InvalidTopologyError(ValidationError):
    """Raised when branches reference missing nodes or ids are not unique."""

    pass


class InvalidConfigError(ValidationError):
    """Raised when a configuration value is out of range."""

    pass


def validate_topology(
    nodes: Sequence[ElectricalNode],
    branches: Sequence[Branch],
    strict: bool = True,
) -> list[str]:
    """
    Validate that every branch endpoint references an existing node.

    Also rejects duplicate node or branch ids, since output ids must be
    unique within their collection.

    Args:
        nodes: Electrical nodes of the graph
        branches: Branches of the graph (current sources included)
        strict: If True, raises on invalid. If False, returns list of issues.

    Returns:
        List of issue descriptions

    Raises:
        InvalidTopologyError: If strict=True and issues were found
    """
    issues: list[str] = []

    node_counts = Counter(node.id for node in nodes)
    for node_id, count in node_counts.items():
        if count > 1:
            issues.append(f"Node id {node_id!r} appears {count} times")

    branch_counts = Counter(branch.id for branch in branches)
    for branch_id, count in branch_counts.items():
        if count > 1:
            issues.append(f"Branch id {branch_id!r} appears {count} times")

    for branch in branches:
        if branch.source_id not in node_counts:
            issues.append(f"Branch {branch.id!r} references missing node {branch.source_id!r}")
        if branch.target_id not in node_counts:
            issues.append(f"Branch {branch.id!r} references missing node {branch.target_id!r}")

    if strict and issues:
        msg = "Invalid circuit topology:\n" + "\n".join(issues)
        raise InvalidTopologyError(msg)

    return issues


def validate_canvas_size(size: Sequence[float]) -> tuple[float, float]:
    """
    Validate canvas size dimensions.

    Args:
        size: [width, height] sequence

    Returns:
        Validated (width, height) tuple

    Raises:
        InvalidConfigError: If dimensions are invalid
    """
    if len(size) < 2:
        raise InvalidConfigError(
            f"Canvas size must have 2 elements [width, height], got {len(size)}"
        )

    width, height = float(size[0]), float(size[1])

    if width <= 0:
        raise InvalidConfigError(f"Canvas width must be positive, got {width}")
    if height <= 0:
        raise InvalidConfigError(f"Canvas height must be positive, got {height}")

    return width, height


def validate_iterations(iterations: int, name: str = "iterations") -> int:
    """
    Validate iteration count is positive.

    Raises:
        InvalidConfigError: If iterations < 1
    """
    if iterations < 1:
        raise InvalidConfigError(f"{name} must be >= 1, got {iterations}")
    return iterations


def validate_positive(value: float, name: str) -> float:
    """
    Validate a strictly positive quantity.

    Raises:
        InvalidConfigError: If value <= 0
    """
    if value <= 0:
        raise InvalidConfigError(f"{name} must be positive, got {value}")
    return value


def validate_non_negative(value: float, name: str) -> float:
    """
    Validate a quantity that may be zero.

    Raises:
        InvalidConfigError: If value < 0
    """
    if value < 0:
        raise InvalidConfigError(f"{name} must be >= 0, got {value}")
    return value


def validate_fraction(value: float, name: str) -> float:
    """
    Validate a value lies in [0, 1].

    Raises:
        InvalidConfigError: If value is outside [0, 1]
    """
    if value < 0 or value > 1:
        raise InvalidConfigError(f"{name} must be in [0, 1], got {value}")
    return value


__all__ = [
    "ValidationError",
    "InvalidTopologyError",
    "InvalidConfigError",
    "validate_topology",
    "validate_canvas_size",
    "validate_iterations",
    "validate_positive",
    "validate_non_negative",
    "validate_fraction",
]
