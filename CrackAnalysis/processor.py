"""Unified processor for the crack measurement pipeline."""

import logging
import numpy as np
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .binarizer import IMaskBinarizer, MaskBinarizer, to_gray8
from .distance_field import DistanceFieldBuilder, IDistanceFieldBuilder
from .errors import InvalidConfiguration
from .labeler import ComponentLabeler, IComponentLabeler, LabeledComponent, LabelingResult
from .measurement import CrackMeasurement, MeasurementCalculator
from .skeleton import ISkeletonExtractor, SkeletonExtractor
from .softmax import INormalizer, SoftmaxNormalizer, as_channels
from .visualizer import CrackVisualizer

logger = logging.getLogger(__name__)


@dataclass
class AnalysisConfig:
    min_pixels: int = 500
    length_calibration: float = 0.8
    connectivity: int = 8
    threshold: int = 127
    foreground_channel: int = 1
    kernel_size: int = 3
    max_workers: int = 1

    def __post_init__(self):
        if self.min_pixels < 0:
            raise InvalidConfiguration(f"min_pixels must be >= 0, got {self.min_pixels}")
        if self.length_calibration <= 0:
            raise InvalidConfiguration(
                f"length_calibration must be > 0, got {self.length_calibration}"
            )
        if self.connectivity not in (4, 8):
            raise InvalidConfiguration(f"connectivity must be 4 or 8, got {self.connectivity}")
        if not 0 <= self.threshold <= 255:
            raise InvalidConfiguration(f"threshold must be in [0, 255], got {self.threshold}")
        if self.foreground_channel < 0:
            raise InvalidConfiguration(
                f"foreground_channel must be >= 0, got {self.foreground_channel}"
            )
        if self.kernel_size < 1 or self.kernel_size % 2 == 0:
            raise InvalidConfiguration(
                f"kernel_size must be a positive odd number, got {self.kernel_size}"
            )
        if self.max_workers < 1:
            raise InvalidConfiguration(f"max_workers must be >= 1, got {self.max_workers}")


@dataclass
class CrackAnalysisResult:
    """Everything one pipeline run produced."""
    gray_mask: np.ndarray  # uint8 probability before thresholding
    mask: np.ndarray  # Cleaned boolean crack mask
    labeling: LabelingResult
    measurements: List[CrackMeasurement] = field(default_factory=list)

    @property
    def crack_count(self) -> int:
        return len(self.measurements)


class CrackAnalysisProcessor:
    """
    Complete pipeline: normalize → binarize → label → distance → skeleton → measure.

    The labeler is the only sequential step. Distance field, skeleton and
    measurement run per component and may be spread over a thread pool.
    """

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        normalizer: Optional[INormalizer] = None,
        binarizer: Optional[IMaskBinarizer] = None,
        labeler: Optional[IComponentLabeler] = None,
        distance_builder: Optional[IDistanceFieldBuilder] = None,
        skeleton_extractor: Optional[ISkeletonExtractor] = None,
        visualizer: Optional[CrackVisualizer] = None
    ):
        """
        Args:
            config: Pipeline settings. None=defaults
            normalizer: Logits normalization. None=softmax
            binarizer: Mask binarization. None=threshold + open/close from config
            labeler: Component labeling. None=run-based labeler from config
            distance_builder: Distance transform. None=exact EDT
            skeleton_extractor: Skeleton extraction. None=local maxima
            visualizer: Rendering. None=default
        """
        self._config = config or AnalysisConfig()
        self._normalizer = normalizer or SoftmaxNormalizer()
        self._binarizer = binarizer or MaskBinarizer(
            threshold=self._config.threshold,
            kernel_size=self._config.kernel_size
        )
        self._labeler = labeler or ComponentLabeler(connectivity=self._config.connectivity)
        self._distance_builder = distance_builder or DistanceFieldBuilder()
        self._skeleton_extractor = skeleton_extractor or SkeletonExtractor()
        self._calculator = MeasurementCalculator(
            min_pixels=self._config.min_pixels,
            length_calibration=self._config.length_calibration
        )
        self._visualizer = visualizer or CrackVisualizer()

    @property
    def config(self) -> AnalysisConfig:
        return self._config

    @property
    def visualizer(self) -> CrackVisualizer:
        return self._visualizer

    def probability_map(self, logits: np.ndarray) -> np.ndarray:
        """
        Crack probability plane from raw model output.

        Args:
            logits: [H,W], [C,H,W] or [1,C,H,W]

        Returns:
            float64 [H, W] probabilities
        """
        channels = as_channels(logits).shape[0]
        probabilities = self._normalizer.normalize(logits)

        if channels == 1:
            return probabilities[0]

        if self._config.foreground_channel >= channels:
            raise InvalidConfiguration(
                f"foreground_channel {self._config.foreground_channel} "
                f"out of range for {channels} channels"
            )
        return probabilities[self._config.foreground_channel]

    def process(self, logits: np.ndarray) -> CrackAnalysisResult:
        """Run the full pipeline on model output."""
        return self.analyze_mask(self.probability_map(logits))

    def analyze_mask(self, probability: np.ndarray) -> CrackAnalysisResult:
        """
        Run binarization onward on a probability or 8-bit gray plane.

        Args:
            probability: float [H, W] in [0, 1] or uint8 [H, W]

        Returns:
            Analysis result with measurements in label order
        """
        mask = self._binarizer.binarize(probability)
        labeling = self._labeler.label(mask)

        survivors = [c for c in labeling.components if self._calculator.accepts(c)]
        dropped = labeling.num_components - len(survivors)
        if dropped:
            logger.debug(
                "Dropped %d components below %d pixels", dropped, self._calculator.min_pixels
            )

        if self._config.max_workers > 1 and len(survivors) > 1:
            with ThreadPoolExecutor(max_workers=self._config.max_workers) as pool:
                results = list(pool.map(
                    lambda c: self._measure_component(c, labeling.labels), survivors
                ))
        else:
            results = [self._measure_component(c, labeling.labels) for c in survivors]

        measurements = [m for m in results if m is not None]
        logger.info(
            "Measured %d cracks out of %d components", len(measurements), labeling.num_components
        )

        return CrackAnalysisResult(
            gray_mask=to_gray8(probability),
            mask=mask,
            labeling=labeling,
            measurements=measurements
        )

    def _measure_component(
        self,
        component: LabeledComponent,
        labels: np.ndarray
    ) -> Optional[CrackMeasurement]:
        """Distance field, skeleton and measurement of one component."""
        crop = component.crop_mask(labels)
        distance = self._distance_builder.build(crop)
        skeleton = self._skeleton_extractor.extract(distance, crop)
        return self._calculator.measure(component, distance, skeleton)

    def process_with_visualization(
        self,
        logits: np.ndarray,
        image: np.ndarray
    ) -> Tuple[CrackAnalysisResult, np.ndarray]:
        """
        Process and generate the annotated image.

        Args:
            logits: Model output at the image resolution
            image: BGR source image

        Returns:
            (analysis_result, annotated_image)
        """
        result = self.process(logits)
        return result, self._visualizer.visualize(image, result.measurements)


def analyze(
    logits_or_probabilities: np.ndarray,
    min_pixels: int = 500,
    connectivity: int = 8,
    length_calibration: float = 0.8,
    threshold: int = 127
) -> List[CrackMeasurement]:
    """Measure every crack in a segmentation output."""
    config = AnalysisConfig(
        min_pixels=min_pixels,
        length_calibration=length_calibration,
        connectivity=connectivity,
        threshold=threshold
    )
    return CrackAnalysisProcessor(config).process(logits_or_probabilities).measurements


def visualize(original_image: np.ndarray, measurements: List[CrackMeasurement]) -> np.ndarray:
    """Annotated copy of the image with skeletons and measurement labels."""
    return CrackVisualizer().visualize(original_image, measurements)
