"""Per-pixel softmax over segmentation logits."""

import numpy as np
from typing import Protocol

from .errors import InvalidInput


class INormalizer(Protocol):
    """Interface for logits normalization."""
    def normalize(self, logits: np.ndarray) -> np.ndarray: ...


def as_channels(array: np.ndarray) -> np.ndarray:
    """
    Bring model output to [C, H, W].

    Accepts [H, W] (one probability channel), [C, H, W] and [1, C, H, W].
    Raises InvalidInput for any other rank, for C < 1 and for zero-sized planes.
    """
    array = np.asarray(array)

    if array.ndim == 2:
        array = array[np.newaxis]
    elif array.ndim == 4:
        if array.shape[0] != 1:
            raise InvalidInput(f"Batch axis must have size 1, got shape {array.shape}")
        array = array[0]
    elif array.ndim != 3:
        raise InvalidInput(f"Expected [H,W], [C,H,W] or [1,C,H,W], got shape {array.shape}")

    channels, height, width = array.shape
    if channels < 1:
        raise InvalidInput("Probability field needs at least one channel")
    if height == 0 or width == 0:
        raise InvalidInput(f"Zero-sized input: {height}x{width}")

    return array


class SoftmaxNormalizer:
    """Convert [C, H, W] logits into per-pixel probability distributions."""

    def normalize(self, logits: np.ndarray) -> np.ndarray:
        """
        Args:
            logits: Raw model output, any layout accepted by as_channels

        Returns:
            New float64 [C, H, W] array. For C == 1 the single channel is
            clamped to [0, 1] instead of normalized.
        """
        field = as_channels(logits).astype(np.float64)

        if field.shape[0] == 1:
            return np.clip(field, 0.0, 1.0)

        # Shift by the per-pixel max so exp never overflows
        shifted = field - field.max(axis=0, keepdims=True)
        exp = np.exp(shifted)
        return exp / exp.sum(axis=0, keepdims=True)
