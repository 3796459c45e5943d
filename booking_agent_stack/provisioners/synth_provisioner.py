"""
Booking Agent Stack - Synth Provisioner
========================================

Writes the stack spec as a JSON template to the output directory, for a
deployment tool or a reviewer to pick up.
"""

import json
import logging
from typing import Any, Dict

from booking_agent_stack.config import Settings
from booking_agent_stack.provisioners.base import BaseProvisioner, resource_ids
from booking_agent_stack.models import StackSpec

logger = logging.getLogger(__name__)


class SynthProvisioner(BaseProvisioner):
    """Provisioner that synthesizes `<output_dir>/<stack>.template.json`."""

    name = "synth"

    def __init__(self, settings: Settings):
        super().__init__(settings)

    async def _provision(self, stack: StackSpec) -> Dict[str, Any]:
        output_dir = self.settings.output_dir
        output_dir.mkdir(parents=True, exist_ok=True)
        output_path = output_dir / f"{stack.stack_name}.template.json"

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(stack.to_template(), f, indent=2, ensure_ascii=False)
        logger.info(f"[Provisioner:synth] Wrote template: {output_path}")

        return {
            "handles": {rid: f"{stack.stack_name}/{rid}" for rid in resource_ids(stack)},
            "output_path": str(output_path),
        }
