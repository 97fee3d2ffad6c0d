"""
NetWorth Pro - Streamlit Cloud Entry Point
==========================================
This file serves as the entry point for Streamlit Cloud deployment.

For Streamlit Cloud deployment:
- Branch: main
- Main file path: streamlit_app.py

Locally: streamlit run streamlit_app.py
"""

import os
import runpy
import sys

# Get absolute paths
_this_file = os.path.abspath(__file__)
_this_dir = os.path.dirname(_this_file)
_backend_path = os.path.join(_this_dir, "backend")

# Add backend directory to Python path
if _backend_path not in sys.path:
    sys.path.insert(0, _backend_path)

# Run the app script on every rerun (a plain import would only run once)
runpy.run_path(os.path.join(_backend_path, "app.py"), run_name="__main__")
