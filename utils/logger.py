import json
import logging
import os
from typing import Dict, Any, Optional
from datetime import datetime
from threading import Lock

logger = logging.getLogger(__name__)

# Stage weights for one crack analysis run
CRACK_ANALYSIS_STAGES = {
    "loading": 10,
    "segmentation mask": 20,
    "crack measurement": 50,
    "visualization": 15,
    "reporting": 5
}


class ProgressLogger:
    """Track weighted pipeline stages and mirror them to a JSON file."""

    def __init__(self, log_file: Optional[str] = "progress_log.json"):
        """
        Args:
            log_file: JSON state file. None=keep state in memory only
        """
        self.log_file = log_file
        self.lock = Lock()
        self.current_state = self._empty_state()
        self._save_state()

    @staticmethod
    def _empty_state() -> Dict[str, Any]:
        return {
            "start_time": None,
            "last_update": None,
            "end_time": None,
            "status": "not_started",  # not_started, running, completed, error
            "progress": 0,
            "current_stage": "",
            "stages": {},
            "messages": [],
            "error": None,
            "details": {}
        }

    def _save_state(self) -> None:
        """Save current state to JSON file"""
        if self.log_file is None:
            return
        with self.lock:
            directory = os.path.dirname(self.log_file)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.log_file, 'w', encoding='utf-8') as f:
                json.dump(self.current_state, f, indent=2)

    def _require_stage(self, stage: str) -> Dict[str, Any]:
        if stage not in self.current_state["stages"]:
            raise ValueError(f"Stage {stage} not found in registered stages")
        return self.current_state["stages"][stage]

    def _recompute_progress(self) -> None:
        stages = self.current_state["stages"].values()
        total_weight = sum(s["weight"] for s in stages)
        if total_weight <= 0:
            self.current_state["progress"] = 0
            return
        total = sum(s["progress"] * s["weight"] for s in stages) / total_weight
        self.current_state["progress"] = round(total, 2)

    def start_process(self, stages: Dict[str, float] = None) -> None:
        """Start the logging process with defined stages and their weights"""
        stages = stages or CRACK_ANALYSIS_STAGES
        now = datetime.now().isoformat()
        self.current_state = self._empty_state()
        self.current_state.update({
            "start_time": now,
            "last_update": now,
            "status": "running",
            "stages": {stage: {"weight": weight, "progress": 0, "status": "pending"}
                       for stage, weight in stages.items()}
        })
        self._save_state()

    def update_stage_progress(self, stage: str, progress: float, details: Dict[str, Any] = None) -> None:
        """Update progress for a specific stage"""
        info = self._require_stage(stage)

        self.current_state["current_stage"] = stage
        info["progress"] = min(progress, 100)
        info["status"] = "running"
        if details:
            info.setdefault("details", {}).update(details)

        self._recompute_progress()
        self.current_state["last_update"] = datetime.now().isoformat()
        self._save_state()

    def complete_stage(self, stage: str, details: Dict[str, Any] = None) -> None:
        """Mark a stage as completed"""
        info = self._require_stage(stage)

        info["progress"] = 100
        info["status"] = "completed"
        if details:
            info.setdefault("details", {}).update(details)

        self._recompute_progress()
        self.current_state["last_update"] = datetime.now().isoformat()
        self._save_state()

    def complete_process(self, details: Dict[str, Any] = None) -> None:
        """Mark the entire process as completed"""
        self.current_state["status"] = "completed"
        self.current_state["progress"] = 100
        self.current_state["end_time"] = datetime.now().isoformat()
        if details:
            self.current_state["details"].update(details)
        self._save_state()

    def log_message(self, message: str) -> None:
        """Record a free-form message"""
        logger.info(message)
        self.current_state["messages"].append(
            {"time": datetime.now().isoformat(), "message": message}
        )
        self._save_state()

    def log_error(self, error_message: str, details: Dict[str, Any] = None) -> None:
        """Log an error"""
        logger.error(error_message)
        self.current_state["status"] = "error"
        self.current_state["error"] = error_message
        if details:
            self.current_state["details"].update(details)
        self._save_state()

    def get_current_state(self) -> Dict[str, Any]:
        """Get current state"""
        return self.current_state
