"""Square-window morphology on numpy arrays."""

import numpy as np
from typing import Callable


def _window_reduce(
    image: np.ndarray,
    kernel_size: int,
    reduce: Callable[[np.ndarray, np.ndarray], np.ndarray],
    pad_value
) -> np.ndarray:
    """
    Combine every pixel of a k x k window centred on each pixel.

    Args:
        image: 2-D array
        kernel_size: Odd window side
        reduce: Pairwise reduction (np.maximum, np.minimum, np.logical_and...)
        pad_value: Value assumed outside the image

    Returns:
        New array, same shape and dtype as image
    """
    r = kernel_size // 2
    if r == 0:
        return image.copy()

    h, w = image.shape
    padded = np.pad(image, r, mode='constant', constant_values=pad_value)

    out = padded[0:h, 0:w].copy()
    for dy in range(kernel_size):
        for dx in range(kernel_size):
            if dy == 0 and dx == 0:
                continue
            reduce(out, padded[dy:dy + h, dx:dx + w], out=out)
    return out


def erode(mask: np.ndarray, kernel_size: int = 3) -> np.ndarray:
    """Binary erosion. Pixels outside the image count as foreground."""
    return _window_reduce(mask.astype(bool), kernel_size, np.logical_and, True)


def dilate(mask: np.ndarray, kernel_size: int = 3) -> np.ndarray:
    """Binary dilation. Pixels outside the image count as background."""
    return _window_reduce(mask.astype(bool), kernel_size, np.logical_or, False)


def opening(mask: np.ndarray, kernel_size: int = 3) -> np.ndarray:
    """Erosion then dilation: removes specks smaller than the kernel."""
    return dilate(erode(mask, kernel_size), kernel_size)


def closing(mask: np.ndarray, kernel_size: int = 3) -> np.ndarray:
    """Dilation then erosion: bridges gaps narrower than the kernel."""
    return erode(dilate(mask, kernel_size), kernel_size)


def grey_dilate(field: np.ndarray, kernel_size: int = 3, pad_value: float = 0.0) -> np.ndarray:
    """Moving maximum of a float field over a k x k window."""
    return _window_reduce(field, kernel_size, np.maximum, pad_value)
