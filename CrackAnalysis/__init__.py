"""Crack measurement from semantic segmentation output."""

from .errors import CrackAnalysisError, InvalidInput, InvalidConfiguration
from .softmax import SoftmaxNormalizer
from .binarizer import MaskBinarizer, to_gray8
from .labeler import ComponentLabeler, LabeledComponent, LabelingResult
from .distance_field import DistanceFieldBuilder
from .skeleton import SkeletonExtractor
from .measurement import CrackMeasurement, MeasurementCalculator
from .visualizer import CrackVisualizer
from .processor import (
    AnalysisConfig,
    CrackAnalysisProcessor,
    CrackAnalysisResult,
    analyze,
    visualize
)

__all__ = [
    'CrackAnalysisError',
    'InvalidInput',
    'InvalidConfiguration',
    'SoftmaxNormalizer',
    'MaskBinarizer',
    'to_gray8',
    'ComponentLabeler',
    'LabeledComponent',
    'LabelingResult',
    'DistanceFieldBuilder',
    'SkeletonExtractor',
    'CrackMeasurement',
    'MeasurementCalculator',
    'CrackVisualizer',
    'AnalysisConfig',
    'CrackAnalysisProcessor',
    'CrackAnalysisResult',
    'analyze',
    'visualize'
]
