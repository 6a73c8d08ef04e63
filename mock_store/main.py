from fastapi import FastAPI
from pathlib import Path
import json
import os

from mock_store.app import create_app

# Support both local development and Docker
SEED_FILE = Path(os.environ.get("MOCK_STORE_SEED", Path(__file__).resolve().parent / "seed.json"))

app: FastAPI = create_app(json.loads(SEED_FILE.read_text()) if SEED_FILE.exists() else None)
