"""Medial axis approximation from distance field local maxima."""

import numpy as np
from typing import Protocol

from .errors import InvalidInput
from .morphology import grey_dilate


class ISkeletonExtractor(Protocol):
    """Interface for skeleton extraction."""
    def extract(self, distance_field: np.ndarray, mask: np.ndarray) -> np.ndarray: ...


class SkeletonExtractor:
    """
    Keep the pixels whose distance is not exceeded anywhere in their 3x3 window.

    Plateaus keep every tied pixel, so a crack of even width yields a two-pixel
    wide axis. The result is not thinned or pruned.
    """

    def __init__(self, window: int = 3):
        self._window = window

    def extract(self, distance_field: np.ndarray, mask: np.ndarray) -> np.ndarray:
        """
        Args:
            distance_field: Component distance field
            mask: Component boolean mask, same shape

        Returns:
            Boolean skeleton mask, subset of mask
        """
        if distance_field.shape != mask.shape:
            raise InvalidInput(
                f"Distance field {distance_field.shape} and mask {mask.shape} differ in shape"
            )

        # Outside the crop lies background, distance 0
        local_max = grey_dilate(distance_field, self._window, pad_value=0.0)
        return (distance_field >= local_max) & mask.astype(bool)
