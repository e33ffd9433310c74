import os

# Umgebungsvariablen VOR dem Import der App setzen (Settings werden beim Import gelesen).
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("ENABLE_ADMIN_BACKEND", "true")
os.environ.setdefault("SEED_DEMO_DATA", "true")
os.environ.setdefault("DIALOGFLOW_ENABLED", "false")

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def client():
    from refugee_bot.main import app

    # Context-Manager löst die Startup-Events aus (DB, Seed, Pipeline).
    with TestClient(app) as test_client:
        yield test_client
