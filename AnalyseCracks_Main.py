import argparse
import json
import logging
import os
import sys
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import cv2
import numpy as np

from CrackAnalysis import (
    AnalysisConfig,
    CrackAnalysisProcessor,
    CrackMeasurement,
    MeasurementCalculator,
    to_gray8
)
from Reporter.ExcelReporter import CrackExcelReporter
from utils.logger import ProgressLogger, CRACK_ANALYSIS_STAGES

logger = logging.getLogger(__name__)

RAW_MASK_NAME = "raw_mask.png"
CLEANED_MASK_NAME = "cleaned_mask.png"
OVERLAY_NAME = "mask_overlay_transparent.png"
ANALYSIS_NAME = "crack_analysis_overlay.png"
JSON_NAME = "measurements.json"
EXCEL_NAME = "Crack-Measurements.xlsx"


def setup_logging(log_dir: str = "logs") -> None:
    """Configure root logging to stdout and a log file"""
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, "crack_analysis.log")

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file, mode='a')
        ]
    )


def load_logits(path: str) -> np.ndarray:
    """Load model output saved with numpy.save"""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Logits file not found: {path}")
    return np.load(path)


def load_image(path: str) -> np.ndarray:
    """Load a BGR image"""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Image file not found: {path}")
    image = cv2.imread(path, cv2.IMREAD_COLOR)
    if image is None:
        raise ValueError(f"Could not load image: {path}")
    return image


@dataclass
class RunOutput:
    """Measurements and written artifacts of one run"""
    measurements: List[CrackMeasurement]
    output_dir: str
    artifacts: Dict[str, str] = field(default_factory=dict)
    elapsed_sec: float = 0.0


class CrackAnalysisRunner:
    """Load model output and image, run the pipeline, write every artifact"""

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        progress_logger: Optional[ProgressLogger] = None
    ):
        self.processor = CrackAnalysisProcessor(config)
        self.progress_logger = progress_logger or ProgressLogger(log_file=None)

    def run(
        self,
        logits_path: str,
        image_path: str,
        output_dir: str,
        write_excel: bool = False
    ) -> RunOutput:
        """
        Args:
            logits_path: .npy model output ([C,H,W], [1,C,H,W] or [H,W])
            image_path: Source image
            output_dir: Directory for masks, overlays and reports
            write_excel: Also write the Excel measurement table

        Returns:
            Run output with measurements and artifact paths
        """
        start = time.perf_counter()
        self.progress_logger.start_process(CRACK_ANALYSIS_STAGES)

        try:
            output = self._run(logits_path, image_path, output_dir, write_excel)
        except Exception as e:
            self.progress_logger.log_error(f"Crack analysis failed: {e}")
            raise

        output.elapsed_sec = time.perf_counter() - start
        self.progress_logger.complete_process({
            "cracks": len(output.measurements),
            "output_dir": output_dir
        })
        logger.info(
            "Analysed %s: %d cracks in %.2fs",
            image_path, len(output.measurements), output.elapsed_sec
        )
        return output

    def _run(self, logits_path: str, image_path: str, output_dir: str, write_excel: bool) -> RunOutput:
        os.makedirs(output_dir, exist_ok=True)
        output = RunOutput(measurements=[], output_dir=output_dir)

        logits = load_logits(logits_path)
        image = load_image(image_path)
        self.progress_logger.complete_stage("loading", {"logits_shape": list(logits.shape)})

        # Probability at model resolution, resized to the image
        gray = to_gray8(self.processor.probability_map(logits))
        height, width = image.shape[:2]
        if gray.shape != (height, width):
            gray = cv2.resize(gray, (width, height), interpolation=cv2.INTER_LINEAR)
        output.artifacts["raw_mask"] = self._write(output_dir, RAW_MASK_NAME, gray)
        self.progress_logger.complete_stage("segmentation mask")

        result = self.processor.analyze_mask(gray)
        output.measurements = result.measurements
        cleaned = result.mask.astype(np.uint8) * 255
        output.artifacts["cleaned_mask"] = self._write(output_dir, CLEANED_MASK_NAME, cleaned)
        self.progress_logger.complete_stage(
            "crack measurement",
            {"components": result.labeling.num_components, "cracks": result.crack_count}
        )

        visualizer = self.processor.visualizer
        overlay = visualizer.create_overlay(image, gray)
        output.artifacts["overlay"] = self._write(output_dir, OVERLAY_NAME, overlay)
        analysis = visualizer.visualize(image, result.measurements)
        output.artifacts["analysis"] = self._write(output_dir, ANALYSIS_NAME, analysis)
        self.progress_logger.complete_stage("visualization")

        json_path = os.path.join(output_dir, JSON_NAME)
        with open(json_path, 'w', encoding='utf-8') as f:
            json.dump([m.to_dict() for m in result.measurements], f, indent=2)
        output.artifacts["json"] = json_path

        if write_excel:
            reporter = CrackExcelReporter(
                os.path.join(output_dir, EXCEL_NAME), self.progress_logger
            )
            output.artifacts["excel"] = reporter.generate_report(result.measurements)
        else:
            self.progress_logger.complete_stage("reporting")

        return output

    @staticmethod
    def _write(output_dir: str, name: str, image: np.ndarray) -> str:
        path = os.path.join(output_dir, name)
        if not cv2.imwrite(path, image):
            raise IOError(f"Could not write image: {path}")
        return path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Measure cracks from segmentation model output')
    parser.add_argument('--logits', required=True, help='Model output saved as .npy')
    parser.add_argument('--image', required=True, help='Original image')
    parser.add_argument('--output-dir', default='crack_output', help='Directory for results')
    parser.add_argument('--min-pixels', type=int, default=500, help='Smallest crack area kept')
    parser.add_argument('--length-calibration', type=float, default=0.8,
                        help='Length per skeleton pixel')
    parser.add_argument('--connectivity', type=int, choices=[4, 8], default=8)
    parser.add_argument('--threshold', type=int, default=127, help='8-bit binarization threshold')
    parser.add_argument('--workers', type=int, default=1, help='Threads for per-crack work')
    parser.add_argument('--excel', action='store_true', help='Also write an Excel report')
    parser.add_argument('--progress-file', default=None, help='JSON progress file')
    parser.add_argument('--log-dir', default='logs', help='Directory for the log file')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_dir)

    config = AnalysisConfig(
        min_pixels=args.min_pixels,
        length_calibration=args.length_calibration,
        connectivity=args.connectivity,
        threshold=args.threshold,
        max_workers=args.workers
    )
    runner = CrackAnalysisRunner(config, ProgressLogger(log_file=args.progress_file))
    output = runner.run(args.logits, args.image, args.output_dir, write_excel=args.excel)

    print(MeasurementCalculator.format_report(output.measurements))
    for name, path in output.artifacts.items():
        print(f"  {name}: {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
