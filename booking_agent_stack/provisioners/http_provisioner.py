"""
Booking Agent Stack - HTTP Provisioner
=======================================

Sends the stack spec to a provisioning service over HTTP. The service is
opaque: it receives the camelCase template and answers with the physical
handle of each resource.

    POST {endpoint}/stacks/{stack_name}
    ← {"handles": {"<logical id>": "<physical id>", ...}, ...}
"""

import logging
from typing import Any, Dict

import requests

from booking_agent_stack.config import Settings
from booking_agent_stack.errors import ProvisioningError
from booking_agent_stack.provisioners.base import BaseProvisioner
from booking_agent_stack.models import StackSpec

logger = logging.getLogger(__name__)


class HttpProvisioner(BaseProvisioner):
    """Provisioner backed by a remote provisioning API."""

    name = "http"

    def __init__(self, settings: Settings):
        super().__init__(settings)

    async def _provision(self, stack: StackSpec) -> Dict[str, Any]:
        endpoint = self.settings.provisioning_endpoint
        if not endpoint:
            raise ProvisioningError(
                "No provisioning endpoint configured (BOOKING_PROVISIONING_ENDPOINT)"
            )

        url = f"{endpoint.rstrip('/')}/stacks/{stack.stack_name}"
        headers = {"Content-Type": "application/json"}
        if self.settings.provisioning_token:
            headers["Authorization"] = f"Bearer {self.settings.provisioning_token}"

        logger.info(f"[Provisioner:http] POST {url}")
        try:
            response = requests.post(
                url,
                json=stack.to_template(),
                headers=headers,
                timeout=self.settings.provisioning_timeout_seconds,
            )
            response.raise_for_status()
        except requests.HTTPError as e:
            body = e.response.text[:500] if e.response is not None else ""
            raise ProvisioningError(f"Provisioning API rejected {stack.stack_name}: {e} {body}") from e
        except requests.RequestException as e:
            raise ProvisioningError(f"Provisioning API unreachable at {url}: {e}") from e

        data = response.json()
        handles = data.get("handles")
        if not isinstance(handles, dict):
            raise ProvisioningError(f"Provisioning API returned no handles for {stack.stack_name}")

        return {
            "handles": {str(k): str(v) for k, v in handles.items()},
            "metadata": {k: v for k, v in data.items() if k != "handles"},
        }
