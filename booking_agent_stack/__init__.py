"""
Booking Agent Stack
===================

Declarative definition of a restaurant booking assistant: a managed agent
with a function-calling action group, a document-grounded knowledge base,
and a table for reservation records.

Prompts and the function schema live in YAML files, one folder per locale,
so the assistant can be localized without touching Python code.

Architecture Layers:
    1. Loaders       - Read YAML prompt and function schema documents
    2. Templates     - Render prompt templates with variables
    3. Localization  - Pick the prompt folder for a language
    4. Stack Builder - Assemble the resource specification
    5. Provisioners  - Hand the specification to a deployment backend

Usage:
    from booking_agent_stack import BookingStackBuilder, Settings

    stack = await BookingStackBuilder(Settings(), lang="ko").build()
    template = stack.to_template()
"""

from booking_agent_stack.config import Settings
from booking_agent_stack.loader import load_functions_schema, load_prompt, read_yaml
from booking_agent_stack.models import Prompt, StackSpec
from booking_agent_stack.stack import BookingStackBuilder

__all__ = [
    "Settings",
    "BookingStackBuilder",
    "Prompt",
    "StackSpec",
    "read_yaml",
    "load_prompt",
    "load_functions_schema",
]
