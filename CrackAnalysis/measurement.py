"""Crack measurements derived from distance field and skeleton."""

import numpy as np
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from .errors import InvalidConfiguration
from .labeler import LabeledComponent


@dataclass(frozen=True, eq=False)
class CrackMeasurement:
    """Measured geometry of one crack, in pixels."""
    width: float
    length: float
    center_x: float
    center_y: float
    skeleton: np.ndarray  # Boolean, shaped like bbox
    area: int
    bbox: Tuple[int, int, int, int]  # x, y, width, height
    label: int = 0

    @property
    def skeleton_pixels(self) -> int:
        return int(np.count_nonzero(self.skeleton))

    def skeleton_coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        """Image (ys, xs) of skeleton pixels."""
        ys, xs = np.nonzero(self.skeleton)
        return ys + self.bbox[1], xs + self.bbox[0]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly summary, skeleton excluded."""
        return {
            'label': self.label,
            'width': float(self.width),
            'length': float(self.length),
            'center_x': float(self.center_x),
            'center_y': float(self.center_y),
            'area': int(self.area),
            'skeleton_pixels': self.skeleton_pixels,
            'bbox': [int(v) for v in self.bbox],
        }


class MeasurementCalculator:
    """
    Reduce a component to width, length, centre and area.

    width  = 2 * max distance (thickness at the widest interior point)
    length = skeleton pixels * calibration (corrects diagonal undercount)
    """

    def __init__(self, min_pixels: int = 500, length_calibration: float = 0.8):
        """
        Args:
            min_pixels: Components with a smaller area are not measured
            length_calibration: Length per skeleton pixel
        """
        if min_pixels < 0:
            raise InvalidConfiguration(f"min_pixels must be >= 0, got {min_pixels}")
        if length_calibration <= 0:
            raise InvalidConfiguration(f"length_calibration must be > 0, got {length_calibration}")
        self._min_pixels = min_pixels
        self._length_calibration = length_calibration

    @property
    def min_pixels(self) -> int:
        return self._min_pixels

    def accepts(self, component: LabeledComponent) -> bool:
        """Whether the component is large enough to be measured."""
        return component.area >= self._min_pixels

    def measure(
        self,
        component: LabeledComponent,
        distance_field: np.ndarray,
        skeleton: np.ndarray
    ) -> Optional[CrackMeasurement]:
        """
        Args:
            component: Labeled source region
            distance_field: Its distance field (bbox-shaped)
            skeleton: Its skeleton mask (bbox-shaped)

        Returns:
            Measurement, or None when the component is below min_pixels
        """
        if not self.accepts(component):
            return None

        max_distance = float(distance_field.max()) if distance_field.size else 0.0

        return CrackMeasurement(
            width=2.0 * max_distance,
            length=int(np.count_nonzero(skeleton)) * self._length_calibration,
            center_x=component.centroid_x,
            center_y=component.centroid_y,
            skeleton=skeleton,
            area=component.area,
            bbox=component.bbox,
            label=component.label
        )

    @staticmethod
    def format_report(measurements: List[CrackMeasurement]) -> str:
        """
        Format measurements as readable report.

        Args:
            measurements: Measurement list in output order

        Returns:
            Formatted text report
        """
        lines = []
        lines.append("Crack Measurements:")

        if not measurements:
            lines.append("  No cracks above the size threshold")

        for index, crack in enumerate(measurements):
            lines.append(f"Crack {index + 1}:")
            lines.append(f"  Width: {crack.width:.1f} pixels")
            lines.append(f"  Length: {crack.length:.1f} pixels")
            lines.append(f"  Center: ({crack.center_x:.1f}, {crack.center_y:.1f})")
            lines.append(f"  Area: {crack.area} pixels")

        return "\n".join(lines)
