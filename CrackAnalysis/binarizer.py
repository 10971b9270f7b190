"""Threshold and clean the crack probability channel."""

import numpy as np
from typing import Protocol

from .errors import InvalidConfiguration, InvalidInput
from .morphology import closing, opening


class IMaskBinarizer(Protocol):
    """Interface for mask binarization."""
    def binarize(self, probability: np.ndarray) -> np.ndarray: ...


def to_gray8(probability: np.ndarray) -> np.ndarray:
    """
    Scale a [0, 1] probability plane to uint8.

    uint8 input is taken as already scaled and returned as a copy.
    """
    probability = np.asarray(probability)
    if probability.dtype == np.uint8:
        return probability.copy()
    return np.clip(np.rint(probability * 255.0), 0, 255).astype(np.uint8)


class MaskBinarizer:
    """Threshold at 8-bit level, then open and close with a square kernel."""

    def __init__(self, threshold: int = 127, kernel_size: int = 3):
        """
        Args:
            threshold: Pixels with gray value strictly above this are foreground
            kernel_size: Side of the square structuring element (odd)
        """
        if not 0 <= threshold <= 255:
            raise InvalidConfiguration(f"threshold must be in [0, 255], got {threshold}")
        if kernel_size < 1 or kernel_size % 2 == 0:
            raise InvalidConfiguration(f"kernel_size must be a positive odd number, got {kernel_size}")
        self._threshold = threshold
        self._kernel_size = kernel_size

    @property
    def threshold(self) -> int:
        return self._threshold

    def threshold_only(self, probability: np.ndarray) -> np.ndarray:
        """Raw threshold without morphological cleanup."""
        gray = to_gray8(probability)
        if gray.ndim != 2:
            raise InvalidInput(f"Expected a 2-D plane, got shape {gray.shape}")
        if gray.size == 0:
            raise InvalidInput(f"Zero-sized input: {gray.shape}")
        return gray > self._threshold

    def binarize(self, probability: np.ndarray) -> np.ndarray:
        """
        Build the cleaned binary crack mask.

        Args:
            probability: Float plane in [0, 1] or uint8 gray plane

        Returns:
            Boolean [H, W] mask, True = crack
        """
        mask = self.threshold_only(probability)
        mask = opening(mask, self._kernel_size)
        return closing(mask, self._kernel_size)
