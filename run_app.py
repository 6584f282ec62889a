"""Launcher: loads .env, then starts the dashboard with Streamlit."""
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent
os.chdir(ROOT)

from dotenv import load_dotenv
load_dotenv(ROOT / ".env")

port = os.getenv("SALES_DASHBOARD_PORT", "8501")
sys.argv = ["streamlit", "run", str(ROOT / "app.py"), "--server.port", port]
from streamlit.web import cli as stcli
sys.exit(stcli.main())
