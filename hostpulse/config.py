import os
import logging

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


class Config:
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "3000"))
    LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

    # Static dashboard assets served at "/"
    WEB_DIR = os.getenv("WEB_DIR", os.path.join(PROJECT_ROOT, "web"))

    # 5 hours at one sample per second
    HISTORY_CAPACITY = int(os.getenv("HISTORY_CAPACITY", str(300 * 60)))
    SAMPLE_INTERVAL = float(os.getenv("SAMPLE_INTERVAL", "1"))
    # Blocking window for the CPU percentage measurement
    CPU_SAMPLE_WINDOW = float(os.getenv("CPU_SAMPLE_WINDOW", "1"))

    # Whether to run the in-process collector thread (never started when TESTING)
    COLLECTOR_ENABLED = os.getenv("COLLECTOR_ENABLED", "true").lower() == "true"


class TestConfig(Config):
    TESTING = True
    COLLECTOR_ENABLED = False
