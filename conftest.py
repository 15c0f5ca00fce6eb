"""Global pytest configuration."""

import os

# Keep tests on in-memory repositories and away from real credentials
os.environ["DATABASE_URL"] = ""
os.environ["OPENAI_API_KEY"] = ""
