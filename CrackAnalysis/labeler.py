"""Connected component labeling of the binary crack mask."""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List, Protocol, Tuple

from .errors import InvalidConfiguration, InvalidInput

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabeledComponent:
    """One connected foreground region."""
    label: int
    area: int
    centroid_x: float
    centroid_y: float
    bbox: Tuple[int, int, int, int]  # x, y, width, height

    @property
    def centroid(self) -> Tuple[float, float]:
        return (self.centroid_x, self.centroid_y)

    def crop_mask(self, labels: np.ndarray) -> np.ndarray:
        """Boolean mask of this component restricted to its bounding box."""
        x, y, w, h = self.bbox
        return labels[y:y + h, x:x + w] == self.label


@dataclass
class LabelingResult:
    """Label image plus per-component statistics, in label order."""
    labels: np.ndarray
    components: List[LabeledComponent] = field(default_factory=list)

    @property
    def num_components(self) -> int:
        return len(self.components)


class IComponentLabeler(Protocol):
    """Interface for connected component labeling."""
    def label(self, mask: np.ndarray) -> LabelingResult: ...


class _RunStats:
    """Running totals of a provisional label."""
    __slots__ = ('count', 'sum_x', 'sum_y', 'min_x', 'min_y', 'max_x', 'max_y')

    def __init__(self, y: int, start: int, end: int):
        self.count = 0
        self.sum_x = 0
        self.sum_y = 0
        self.min_x = start
        self.max_x = end - 1
        self.min_y = y
        self.max_y = y

    def add_run(self, y: int, start: int, end: int) -> None:
        n = end - start
        self.count += n
        self.sum_x += (start + end - 1) * n // 2
        self.sum_y += y * n
        self.min_x = min(self.min_x, start)
        self.max_x = max(self.max_x, end - 1)
        self.max_y = max(self.max_y, y)

    def merge(self, other: '_RunStats') -> None:
        self.count += other.count
        self.sum_x += other.sum_x
        self.sum_y += other.sum_y
        self.min_x = min(self.min_x, other.min_x)
        self.max_x = max(self.max_x, other.max_x)
        self.min_y = min(self.min_y, other.min_y)
        self.max_y = max(self.max_y, other.max_y)


def _row_runs(row: np.ndarray) -> List[Tuple[int, int]]:
    """Half-open [start, end) spans of True values in a boolean row."""
    edges = np.diff(np.concatenate(([0], row.view(np.int8), [0])))
    starts = np.flatnonzero(edges == 1)
    ends = np.flatnonzero(edges == -1)
    return list(zip(starts.tolist(), ends.tolist()))


class ComponentLabeler:
    """
    Run-based union-find labeling.

    A single raster pass splits every row into runs and links each run to the
    runs of the previous row it touches. Statistics are accumulated per run,
    so areas, centroids and bounding boxes come out of the same pass. Labels
    are numbered by the raster position of each component's first pixel.
    """

    def __init__(self, connectivity: int = 8):
        """
        Args:
            connectivity: 8 (diagonal neighbours connect) or 4
        """
        if connectivity not in (4, 8):
            raise InvalidConfiguration(f"connectivity must be 4 or 8, got {connectivity}")
        self._connectivity = connectivity

    @property
    def connectivity(self) -> int:
        return self._connectivity

    def label(self, mask: np.ndarray) -> LabelingResult:
        """
        Label connected foreground regions.

        Args:
            mask: 2-D mask, nonzero = foreground

        Returns:
            Labeling result with int32 label image (0 = background)
        """
        mask = np.asarray(mask)
        if mask.ndim != 2:
            raise InvalidInput(f"Expected a 2-D mask, got shape {mask.shape}")
        height, width = mask.shape
        if height == 0 or width == 0:
            raise InvalidInput(f"Zero-sized mask: {height}x{width}")

        mask = mask.astype(bool)
        # Diagonal contact widens the overlap test by one column
        reach = 1 if self._connectivity == 8 else 0

        provisional = np.zeros((height, width), dtype=np.int32)
        parent = [0]
        stats: List[_RunStats] = [None]

        def find(a: int) -> int:
            while parent[a] != a:
                parent[a] = parent[parent[a]]
                a = parent[a]
            return a

        def union(a: int, b: int) -> int:
            ra, rb = find(a), find(b)
            if ra == rb:
                return ra
            # Smallest id stays root so the oldest label wins
            if rb < ra:
                ra, rb = rb, ra
            parent[rb] = ra
            return ra

        prev_runs: List[Tuple[int, int, int]] = []
        for y in range(height):
            runs = []
            j = 0
            for start, end in _row_runs(mask[y]):
                while j < len(prev_runs) and prev_runs[j][1] + reach <= start:
                    j += 1

                run_label = 0
                k = j
                while k < len(prev_runs) and prev_runs[k][0] < end + reach:
                    other = prev_runs[k][2]
                    run_label = other if run_label == 0 else union(run_label, other)
                    k += 1

                if run_label == 0:
                    run_label = len(parent)
                    parent.append(run_label)
                    stats.append(_RunStats(y, start, end))

                stats[run_label].add_run(y, start, end)
                provisional[y, start:end] = run_label
                runs.append((start, end, run_label))
            prev_runs = runs

        # Fold provisional labels into their roots, numbering roots in discovery order
        lut = np.zeros(len(parent), dtype=np.int32)
        totals = {}
        for p in range(1, len(parent)):
            root = find(p)
            if root == p:
                totals[root] = stats[p]
                lut[p] = len(totals)
            else:
                totals[root].merge(stats[p])
                lut[p] = lut[root]

        components = []
        for root, s in totals.items():
            components.append(LabeledComponent(
                label=int(lut[root]),
                area=s.count,
                centroid_x=s.sum_x / s.count,
                centroid_y=s.sum_y / s.count,
                bbox=(s.min_x, s.min_y, s.max_x - s.min_x + 1, s.max_y - s.min_y + 1)
            ))

        logger.debug("Labeled %d components (connectivity=%d)", len(components), self._connectivity)
        return LabelingResult(labels=lut[provisional], components=components)
