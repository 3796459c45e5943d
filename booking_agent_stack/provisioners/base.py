"""
Booking Agent Stack - Base Provisioner
=======================================

Abstract base class for provisioners: the adapters that hand a finished
`StackSpec` to whatever creates the resources. Provides the common lifecycle:
- Logging and timing
- Mock support
- Error wrapping (every failure is fatal for the run)
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from booking_agent_stack.config import Settings
from booking_agent_stack.errors import ProvisioningError
from booking_agent_stack.models import ProvisioningResult, ProvisioningStatus, StackSpec

logger = logging.getLogger(__name__)


def resource_ids(stack: StackSpec) -> List[str]:
    """Logical ids of every resource in the stack, in creation order."""
    ids = [stack.table.id, stack.action_group_function.id]
    ids.extend(group.id for group in stack.agent.action_groups)
    ids.extend([stack.knowledge_base.id, stack.doc_bucket.id, stack.data_source.id, stack.agent.id])
    return ids


class BaseProvisioner(ABC):
    """
    Abstract base class for provisioners.

    Subclasses implement `_provision()` and optionally `_mock_provision()`.
    The base class handles timing, logging, and turns unexpected failures
    into `ProvisioningError`. There is no fallback: a failed run must not
    leave a half-configured resource set behind a success status.
    """

    name = "base"

    def __init__(self, settings: Settings):
        self.settings = settings

    async def provision(self, stack: StackSpec, mock_mode: bool = False) -> ProvisioningResult:
        """
        Provision the stack.

        Args:
            stack: The assembled resource specification.
            mock_mode: Return fake handles without contacting anything.

        Returns:
            ProvisioningResult with one handle per logical resource id.

        Raises:
            ProvisioningError: the provisioner failed.
        """
        start_time = time.time()
        label = f"Provisioner:{self.name}"
        logger.info(f"[{label}] Provisioning {stack.stack_name} ({len(resource_ids(stack))} resources)")

        try:
            if mock_mode:
                logger.info(f"[{label}] Running in MOCK mode")
                output = await self._mock_provision(stack)
                status = ProvisioningStatus.MOCKED
            else:
                output = await self._provision(stack)
                status = ProvisioningStatus.SUCCESS
        except ProvisioningError:
            logger.error(f"[{label}] Provisioning of {stack.stack_name} failed")
            raise
        except Exception as e:
            logger.error(f"[{label}] Failed: {e}")
            raise ProvisioningError(f"{self.name} provisioner failed: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"[{label}] Completed in {latency_ms}ms")

        return ProvisioningResult(
            stack_name=stack.stack_name,
            status=status,
            handles=output.get("handles", {}),
            output_path=output.get("output_path"),
            latency_ms=latency_ms,
            metadata=output.get("metadata", {}),
        )

    # =========================================================================
    # Template methods for subclasses
    # =========================================================================

    @abstractmethod
    async def _provision(self, stack: StackSpec) -> Dict[str, Any]:
        """
        Create the resources.

        Returns:
            Dict with "handles" (logical id → physical id) and optionally
            "output_path" and "metadata".
        """
        ...

    async def _mock_provision(self, stack: StackSpec) -> Dict[str, Any]:
        """Fake handles for development/testing."""
        return {
            "handles": {rid: f"mock-{rid.lower()}" for rid in resource_ids(stack)},
            "metadata": {"mock": True},
        }
