#!/usr/bin/env python3
"""
Decision Workflow Entry Point

Starts the FastAPI server for the decision workflow engine.
"""

import sys

from decision_workflow.api import run_server
from decision_workflow.config import get_config


if __name__ == "__main__":
    config = get_config()
    print("Starting Decision Workflow API...")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")

    try:
        run_server()
    except KeyboardInterrupt:
        print("\nShutting down Decision Workflow API...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
