"""
Booking Agent Stack - Provisioners
==================================

Adapters that turn an assembled `StackSpec` into resources.

Provisioner Registry:
    - SynthProvisioner → Writes the JSON template to the output directory
    - HttpProvisioner  → Sends the template to a provisioning service
"""

from typing import Dict, Type

from booking_agent_stack.config import Settings
from booking_agent_stack.errors import ConfigurationError
from booking_agent_stack.provisioners.base import BaseProvisioner
from booking_agent_stack.provisioners.http_provisioner import HttpProvisioner
from booking_agent_stack.provisioners.synth_provisioner import SynthProvisioner

PROVISIONER_MAP: Dict[str, Type[BaseProvisioner]] = {
    SynthProvisioner.name: SynthProvisioner,
    HttpProvisioner.name: HttpProvisioner,
}


def get_provisioner(name: str, settings: Settings) -> BaseProvisioner:
    """Instantiate the provisioner registered under `name`."""
    key = (name or "synth").strip().lower()
    provisioner_class = PROVISIONER_MAP.get(key)
    if provisioner_class is None:
        raise ConfigurationError(
            f"Unsupported provisioner {name!r}, expected one of {sorted(PROVISIONER_MAP)}",
            field="provisioner",
        )
    return provisioner_class(settings)


__all__ = [
    "BaseProvisioner",
    "SynthProvisioner",
    "HttpProvisioner",
    "PROVISIONER_MAP",
    "get_provisioner",
]
