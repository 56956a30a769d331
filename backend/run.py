#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

For local development only; production runs uvicorn against
``mentorhub.main:app`` directly.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn  # noqa: E402

if __name__ == "__main__":
    print("Starting MentorHub availability API at http://localhost:8000 (docs at /docs)")
    uvicorn.run("mentorhub.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
