"""
Connection and reporting settings.

Values come from environment variables, optionally seeded from a dotenv file
(by default 'config/config.env' below the working directory). Nothing is
validated up front: an empty API key or endpoint surfaces as a connection
error from the chat client, not here.

    AOAI_APIKEY          API key of the Azure OpenAI resource
    AOAI_ENDPOINT        resource endpoint, e.g. https://my-resource.openai.azure.com/
    CHAT_DEPLOYMENTNAME  chat model deployment name
    AOAI_API_VERSION     REST API version (defaults to DEFAULT_API_VERSION)
    REPORTING_PATH       root directory of the disk-based report store
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger
from pydantic import BaseModel, ConfigDict

DEFAULT_CONFIG_FILE = Path("config") / "config.env"
DEFAULT_API_VERSION = "2024-10-21"


class EvaluationSettings(BaseModel):
    """Immutable settings passed explicitly to the chat clients and the report store."""

    model_config = ConfigDict(frozen=True)

    api_key: str = ""
    endpoint: str = ""
    chat_deployment: str = ""
    api_version: str = DEFAULT_API_VERSION
    reporting_path: str = ""

    @property
    def deployment_endpoint(self) -> str:
        """Base URL of the chat deployment: '{endpoint}openai/deployments/{chat_deployment}/'."""
        endpoint = self.endpoint if not self.endpoint or self.endpoint.endswith("/") else f"{self.endpoint}/"
        return f"{endpoint}openai/deployments/{self.chat_deployment}/"


def load_settings(config_file: str | Path | None = None) -> EvaluationSettings:
    """Load a dotenv file (if present) into the environment and build 'EvaluationSettings'.

    Variables already set in the environment win over the file so CI can inject
    secrets without touching it.
    """
    path = Path(config_file) if config_file is not None else DEFAULT_CONFIG_FILE
    if path.is_file():
        load_dotenv(path, override=False)
        logger.debug(f"Loaded configuration from {path}")
    else:
        logger.debug(f"No configuration file at {path}, using environment only")

    return EvaluationSettings(
        api_key=os.environ.get("AOAI_APIKEY", ""),
        endpoint=os.environ.get("AOAI_ENDPOINT", ""),
        chat_deployment=os.environ.get("CHAT_DEPLOYMENTNAME", ""),
        api_version=os.environ.get("AOAI_API_VERSION") or DEFAULT_API_VERSION,
        reporting_path=os.environ.get("REPORTING_PATH", ""),
    )
