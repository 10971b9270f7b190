"""Tests for the crack analysis HTTP service."""

import os
import tempfile

from fastapi.testclient import TestClient

import service
from test_crack_reporting import write_inputs
from utils.logger import ProgressLogger


def make_client() -> TestClient:
    """Client with in-memory progress tracking (lifespan not started)."""
    service.progress_logger = ProgressLogger(log_file=None)
    return TestClient(service.app)


class TestCrackService:
    """Test service endpoints."""

    def test_health(self):
        """Root endpoint reports running."""
        response = make_client().get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"
        print("✓ Health check")

    def test_analyze(self):
        """Analyze returns one entry per crack and writes outputs."""
        client = make_client()
        with tempfile.TemporaryDirectory() as tmp:
            logits_path, image_path = write_inputs(tmp)
            out_dir = os.path.join(tmp, "out")

            response = client.post("/analyze", json={
                "logits_path": logits_path,
                "image_path": image_path,
                "output_dir": out_dir
            })
            written = os.path.isfile(os.path.join(out_dir, "crack_analysis_overlay.png"))

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert [m["area"] for m in body["measurements"]] == [70 * 11, 80 * 13]
        assert written

        state = client.get("/status").json()
        assert state["status"] == "completed"
        print("✓ Analyze endpoint")

    def test_missing_file(self):
        """Unknown paths give HTTP 400."""
        response = make_client().post("/analyze", json={
            "logits_path": "/does/not/exist.npy",
            "image_path": "/does/not/exist.png"
        })

        assert response.status_code == 400
        print("✓ Missing file rejected")

    def test_invalid_configuration(self):
        """Negative min_pixels gives HTTP 422."""
        client = make_client()
        with tempfile.TemporaryDirectory() as tmp:
            logits_path, image_path = write_inputs(tmp)
            response = client.post("/analyze", json={
                "logits_path": logits_path,
                "image_path": image_path,
                "output_dir": os.path.join(tmp, "out"),
                "min_pixels": -5
            })

        assert response.status_code == 422
        print("✓ Invalid configuration rejected")


if __name__ == "__main__":
    tester = TestCrackService()
    for method_name in dir(tester):
        if method_name.startswith("test_"):
            getattr(tester, method_name)()
