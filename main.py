"""Launcher for the project browser (``python main.py``)."""
import os

os.execvp("streamlit", [
    "streamlit", "run", "streamlit_app/dashboard.py",
    "--server.address=" + os.environ.get("DASHBOARD_HOST", "127.0.0.1"),
    "--server.port=" + os.environ.get("PORT", "8501"),
    "--server.headless=true",
])
