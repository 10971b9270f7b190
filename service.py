import logging
import os
import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import List, Optional

from AnalyseCracks_Main import CrackAnalysisRunner, setup_logging
from CrackAnalysis import AnalysisConfig, CrackAnalysisError
from utils.logger import ProgressLogger

logger = logging.getLogger(__name__)

PROGRESS_PATH = os.environ.get(
    "CRACK_PROGRESS_PATH",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "progress_log.json")
)

progress_logger: Optional[ProgressLogger] = None


class AnalyzeRequest(BaseModel):
    logits_path: str
    image_path: str
    output_dir: Optional[str] = None
    min_pixels: int = 500
    length_calibration: float = 0.8
    connectivity: int = 8
    excel: bool = False


class MeasurementModel(BaseModel):
    label: int
    width: float
    length: float
    center_x: float
    center_y: float
    area: int
    skeleton_pixels: int
    bbox: List[int]


class AnalyzeResponse(BaseModel):
    ok: bool
    output_dir: str
    measurements: List[MeasurementModel] = []
    message: Optional[str] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events"""
    global progress_logger

    setup_logging()
    progress_logger = ProgressLogger(log_file=PROGRESS_PATH)
    logger.info("Crack analysis service ready")

    yield

    logger.info("Shutting down service...")


app = FastAPI(title="Crack Analysis Service", lifespan=lifespan)


def _progress_logger() -> ProgressLogger:
    global progress_logger
    if progress_logger is None:
        progress_logger = ProgressLogger(log_file=PROGRESS_PATH)
    return progress_logger


@app.get("/")
def root():
    """Health check endpoint"""
    return {"status": "running"}


@app.get("/status")
def status():
    """Get current analysis progress"""
    return _progress_logger().get_current_state()


@app.post("/analyze", response_model=AnalyzeResponse)
def analyze_image(request: AnalyzeRequest):
    """Measure cracks for one image and its model output"""
    for path in (request.logits_path, request.image_path):
        if not os.path.isfile(path):
            raise HTTPException(status_code=400, detail=f"File not found: {path}")

    output_dir = request.output_dir or os.path.join(
        os.path.dirname(request.image_path),
        os.path.splitext(os.path.basename(request.image_path))[0] + "_cracks"
    )

    try:
        config = AnalysisConfig(
            min_pixels=request.min_pixels,
            length_calibration=request.length_calibration,
            connectivity=request.connectivity
        )
        runner = CrackAnalysisRunner(config, _progress_logger())
        output = runner.run(
            request.logits_path, request.image_path, output_dir, write_excel=request.excel
        )
    except CrackAnalysisError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.exception("Error processing %s", request.image_path)
        raise HTTPException(status_code=500, detail=f"Error processing image: {e}")

    return AnalyzeResponse(
        ok=True,
        output_dir=output_dir,
        measurements=[MeasurementModel(**m.to_dict()) for m in output.measurements],
        message=f"Measured {len(output.measurements)} cracks in {output.elapsed_sec:.2f}s"
    )


if __name__ == "__main__":
    print("Starting Crack Analysis Service...")
    print("Service will be available at: http://127.0.0.1:8766")
    print("Endpoints:")
    print("   GET  /        - Health check")
    print("   GET  /status  - Analysis progress")
    print("   POST /analyze - Measure cracks")

    uvicorn.run(app, host="127.0.0.1", port=8766, workers=1)
