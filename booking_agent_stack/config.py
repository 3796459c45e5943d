"""
Booking Agent Stack - Configuration
====================================

Settings for a stack build, read from environment variables and optionally
overridden by command line arguments.

Environment:
    BOOKING_STACK_NAME                    Stack name (default: SimpleBrStack)
    BOOKING_LANG                          Prompt locale: en, ko, jp (default: en)
    BOOKING_PROMPTS_DIR                   Root of the per-locale prompt folders
    BOOKING_SCHEMAS_DIR                   Folder with the function schema
    BOOKING_FOUNDATION_MODEL              Agent model id
    BOOKING_EMBEDDINGS_MODEL              Knowledge base embeddings model id
    BOOKING_OUTPUT_DIR                    Where the synth provisioner writes
    BOOKING_PROVISIONER                   synth | http
    BOOKING_PROVISIONING_ENDPOINT         Base URL of the provisioning service
    BOOKING_PROVISIONING_TOKEN            Bearer token for that service
    BOOKING_PROVISIONING_TIMEOUT_SECONDS  Request timeout
    BOOKING_VALIDATE_FUNCTION_SCHEMA      Validate the function schema locally
    LOG_LEVEL                             Logging level (default: INFO)
"""

import os
from pathlib import Path
from typing import Any, Dict

from booking_agent_stack.errors import ConfigurationError

PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_FOUNDATION_MODEL = "anthropic.claude-3-haiku-20240307-v1:0"
DEFAULT_EMBEDDINGS_MODEL = "amazon.titan-embed-text-v2:0"


class Settings:
    """Configuration for one stack build."""

    def __init__(self, **overrides: Any):
        self.stack_name = os.getenv("BOOKING_STACK_NAME") or "SimpleBrStack"
        self.lang = os.getenv("BOOKING_LANG") or "en"
        self.prompts_dir = Path(os.getenv("BOOKING_PROMPTS_DIR") or PACKAGE_DIR / "prompts")
        self.schemas_dir = Path(os.getenv("BOOKING_SCHEMAS_DIR") or PACKAGE_DIR / "schemas")
        self.foundation_model = os.getenv("BOOKING_FOUNDATION_MODEL") or DEFAULT_FOUNDATION_MODEL
        self.embeddings_model = os.getenv("BOOKING_EMBEDDINGS_MODEL") or DEFAULT_EMBEDDINGS_MODEL
        self.output_dir = Path(os.getenv("BOOKING_OUTPUT_DIR") or "cdk.out")
        self.provisioner = os.getenv("BOOKING_PROVISIONER") or "synth"
        self.provisioning_endpoint = os.getenv("BOOKING_PROVISIONING_ENDPOINT", "")
        self.provisioning_token = os.getenv("BOOKING_PROVISIONING_TOKEN", "")
        timeout = os.getenv("BOOKING_PROVISIONING_TIMEOUT_SECONDS") or "30"
        try:
            self.provisioning_timeout_seconds = int(timeout)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid timeout {timeout!r}", field="BOOKING_PROVISIONING_TIMEOUT_SECONDS"
            ) from e
        self.validate_function_schema = os.getenv(
            "BOOKING_VALIDATE_FUNCTION_SCHEMA", "false"
        ).strip().lower() in ("1", "true", "yes", "on")
        self.log_level = (os.getenv("LOG_LEVEL") or "INFO").upper()

        for key, value in overrides.items():
            if key not in vars(self):
                raise ConfigurationError(f"Unknown setting: {key}", field=key)
            if value is None:
                continue
            if key in ("prompts_dir", "schemas_dir", "output_dir"):
                value = Path(value)
            setattr(self, key, value)

    @property
    def function_schema_path(self) -> Path:
        return self.schemas_dir / "restaurant_function_schema.yaml"

    def to_dict(self) -> Dict[str, Any]:
        """Settings as a dict, token masked."""
        return {
            "stack_name": self.stack_name,
            "lang": self.lang,
            "prompts_dir": str(self.prompts_dir),
            "schemas_dir": str(self.schemas_dir),
            "foundation_model": self.foundation_model,
            "embeddings_model": self.embeddings_model,
            "output_dir": str(self.output_dir),
            "provisioner": self.provisioner,
            "provisioning_endpoint": self.provisioning_endpoint,
            "provisioning_token": "***" if self.provisioning_token else "",
            "provisioning_timeout_seconds": self.provisioning_timeout_seconds,
            "validate_function_schema": self.validate_function_schema,
            "log_level": self.log_level,
        }
