"""Draw crack skeletons and measurement labels on the source image."""

import cv2
import numpy as np
from typing import List, Tuple

from .errors import InvalidInput
from .measurement import CrackMeasurement

_OUTLINE_OFFSETS = [
    (-1, -1), (-1, 1), (1, -1), (1, 1),
    (-1, 0), (1, 0), (0, -1), (0, 1)
]


def _as_bgr(image: np.ndarray) -> np.ndarray:
    """Copy of the image as 3-channel BGR uint8."""
    if image is None or image.size == 0:
        raise InvalidInput("Image is empty")
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.ndim == 3 and image.shape[2] == 3:
        return image.copy()
    raise InvalidInput(f"Expected gray or BGR image, got shape {image.shape}")


class CrackVisualizer:
    """Annotated crack analysis and mask overlay rendering."""

    def __init__(
        self,
        font_scale: float = 0.5,
        line_height: int = 20,
        overlay_color: Tuple[int, int, int] = (0, 0, 255)
    ):
        self._font = cv2.FONT_HERSHEY_SIMPLEX
        self._font_scale = font_scale
        self._line_height = line_height
        self._overlay_color = overlay_color

    @staticmethod
    def measurement_color(index: int) -> Tuple[int, int, int]:
        """BGR colour for the index-th crack, seeded by the index."""
        rng = np.random.default_rng(index)
        g, r = rng.integers(128, 256, size=2)
        return (0, int(g), int(r))

    def visualize(self, image: np.ndarray, measurements: List[CrackMeasurement]) -> np.ndarray:
        """
        Paint each skeleton and its measurements onto a copy of the image.

        Args:
            image: BGR (or gray) source image
            measurements: Cracks in report order

        Returns:
            Annotated BGR image
        """
        vis = _as_bgr(image)
        h, w = vis.shape[:2]

        for index, crack in enumerate(measurements):
            color = self.measurement_color(index)

            ys, xs = crack.skeleton_coordinates()
            inside = (ys >= 0) & (ys < h) & (xs >= 0) & (xs < w)
            vis[ys[inside], xs[inside]] = color

            x, y = int(crack.center_x), int(crack.center_y)
            lines = [
                f"Crack {index + 1}",
                f"W:{crack.width:.1f}px",
                f"L:{crack.length:.1f}px",
                f"A:{crack.area}px"
            ]
            for line_idx, text in enumerate(lines):
                self._draw_outlined_text(vis, text, (x, y + line_idx * self._line_height))

        return vis

    def _draw_outlined_text(self, vis: np.ndarray, text: str, pos: Tuple[int, int]) -> None:
        """Black outline in 8 directions, then white fill."""
        for dx, dy in _OUTLINE_OFFSETS:
            cv2.putText(
                vis, text, (pos[0] + dx, pos[1] + dy),
                self._font, self._font_scale, (0, 0, 0), 2, cv2.LINE_AA
            )
        cv2.putText(
            vis, text, pos,
            self._font, self._font_scale, (255, 255, 255), 1, cv2.LINE_AA
        )

    def create_overlay(self, image: np.ndarray, mask: np.ndarray, alpha: float = 0.5) -> np.ndarray:
        """
        Red-tinted mask overlay.

        Args:
            image: BGR source image
            mask: Gray or boolean mask, same height and width
            alpha: Weight of the red layer

        Returns:
            Blended BGR image
        """
        vis = _as_bgr(image)
        mask = np.asarray(mask)
        if mask.shape[:2] != vis.shape[:2]:
            raise InvalidInput(f"Mask {mask.shape} does not match image {vis.shape[:2]}")

        if mask.dtype == bool:
            hit = mask
        else:
            hit = mask > 127

        red = np.zeros_like(vis)
        red[hit] = self._overlay_color
        return cv2.addWeighted(vis, 1.0, red, alpha, 0.0)
