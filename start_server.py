#!/usr/bin/env python3
"""
Start the Job Tracker API for local development and wait until it answers.
"""
import argparse
import logging
import os
import signal
import subprocess
import sys
import threading
import time
from pathlib import Path

import requests

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class BackendLauncher:
    def __init__(self, host="127.0.0.1", port=8000, reload=True):
        self.host = host
        self.port = port
        self.reload = reload
        self.process = None
        self.project_root = Path(__file__).parent
        self.app_dir = self.project_root / "job_tracker_app"

    @property
    def base_url(self):
        return f"http://{self.host}:{self.port}"

    def check_prerequisites(self):
        """Check that the backend package is where uvicorn will look for it"""
        if not (self.app_dir / "backend" / "main.py").exists():
            logger.error("Backend main.py not found under %s", self.app_dir)
            return False
        return True

    def setup_environment(self):
        """Development defaults; values already set in the environment or .env win"""
        env = os.environ.copy()
        if "PYTHONPATH" in env:
            env["PYTHONPATH"] = f"{self.app_dir}{os.pathsep}{env['PYTHONPATH']}"
        else:
            env["PYTHONPATH"] = str(self.app_dir)

        for key, value in {
            "ENVIRONMENT": "development",
            "DATABASE_URL": "sqlite:///./job_tracker.db",
            "CORS_ENABLED": "true",
            "API_DOCS_ENABLED": "true",
            "LOG_LEVEL": "INFO",
        }.items():
            env.setdefault(key, value)
        return env

    def start(self, env):
        command = [
            sys.executable, "-m", "uvicorn", "backend.main:app",
            "--app-dir", str(self.app_dir),
            "--host", self.host,
            "--port", str(self.port),
        ]
        if self.reload:
            command.append("--reload")

        logger.info("Starting backend server...")
        try:
            self.process = subprocess.Popen(
                command,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            logger.error("Failed to start backend: %s", e)
            return False

        def read_output():
            for line in iter(self.process.stdout.readline, ""):
                print(f"[BACKEND] {line.rstrip()}")

        threading.Thread(target=read_output, daemon=True).start()
        return True

    def wait_until_ready(self, timeout=30):
        """Poll the health endpoint until the API answers or the deadline passes"""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.process.poll() is not None:
                logger.error("Backend exited with code %s", self.process.returncode)
                return False
            try:
                response = requests.get(f"{self.base_url}/api/health", timeout=2)
                if response.status_code == 200:
                    logger.info("Backend is ready on %s (docs at %s/docs)", self.base_url, self.base_url)
                    return True
            except requests.RequestException:
                pass
            time.sleep(0.5)
        logger.warning("Backend did not answer within %ss", timeout)
        return False

    def cleanup(self):
        if self.process and self.process.poll() is None:
            logger.info("Shutting down backend...")
            self.process.terminate()
            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()

    def run(self):
        try:
            if not self.check_prerequisites():
                return False
            if not self.start(self.setup_environment()):
                return False
            if not self.wait_until_ready():
                return False

            logger.info("Press Ctrl+C to stop the server")
            try:
                while self.process.poll() is None:
                    time.sleep(1)
            except KeyboardInterrupt:
                logger.info("Shutdown requested...")
        finally:
            self.cleanup()
        return True


def main():
    parser = argparse.ArgumentParser(description="Job Tracker development server")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    args = parser.parse_args()

    launcher = BackendLauncher(host=args.host, port=args.port, reload=not args.no_reload)

    def signal_handler(sig, frame):
        logger.info("Received interrupt signal")
        launcher.cleanup()
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)

    if not launcher.run():
        logger.error("Failed to start the Job Tracker API")
        sys.exit(1)


if __name__ == "__main__":
    main()
