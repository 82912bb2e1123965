#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Reads host, port and reload from the environment so the same entry point
works locally and in a container.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn

if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "true").lower() == "true"

    print(f"Starting training scheduler on http://{host}:{port}")
    print(f"API Docs: http://{host}:{port}/docs")

    uvicorn.run("app.main:app", host=host, port=port, reload=reload, log_level="info")
