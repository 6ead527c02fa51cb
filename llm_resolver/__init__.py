"""LLM Resolver

Decides which language-model backend to use at startup and drives it
through whatever authentication it needs before the application proceeds.
"""

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("llm-resolver")
except PackageNotFoundError:
    # Source checkout without an install
    __version__ = "0.1.0"
__author__ = "LLM Resolver"
