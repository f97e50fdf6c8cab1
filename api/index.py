"""
Serverless entry point for the DeskPulse API
"""
import os

# Set environment variables for serverless
os.environ.setdefault("ENVIRONMENT", "production")
os.environ.setdefault("REFRESH_INTERVAL_SECONDS", "0")  # No background ticks in serverless

from mangum import Mangum
from deskpulse.main import app

# Lifespan stays on: the Zammad connection is established per cold start
handler = Mangum(app, lifespan="auto")
