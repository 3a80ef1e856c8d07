#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.

Serves fitstudio.main:app with auto-reload. Production deployments run
uvicorn (or a process manager in front of it) directly.
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
    print(f"Starting fitstudio booking API at http://{host}:{port}")
    print(f"API Docs: http://{host}:{port}/docs")

    uvicorn.run("fitstudio.main:app", host=host, port=port, reload=True, log_level="info")
