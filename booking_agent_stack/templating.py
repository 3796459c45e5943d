"""
Booking Agent Stack - Prompt Templates
=======================================

Wraps a LangChain `PromptTemplate` (f-string placeholders such as `{kb_name}`)
so that rendering failures surface as `TemplateRenderError` instead of
leaking a half-rendered instruction into the stack.
"""

import asyncio
import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from langchain_core.prompts import PromptTemplate
from langchain_core.prompts.string import get_template_variables

from booking_agent_stack.errors import TemplateRenderError

logger = logging.getLogger(__name__)


class CompiledTemplate:
    """
    A template string bound to its declared input variables.

    Rendering is asynchronous: callers must await `render()` before using
    the result.
    """

    def __init__(self, template: str, input_variables: Optional[Iterable[str]] = None):
        # Raises ValueError for syntactically broken templates.
        self.variables: FrozenSet[str] = frozenset(
            get_template_variables(template, "f-string")
        )
        self.template = template
        self.input_variables: List[str] = list(input_variables or [])
        self._prompt = PromptTemplate(
            template=template,
            input_variables=self.input_variables,
        )

    @property
    def required_variables(self) -> FrozenSet[str]:
        """Variables that must be supplied: declared ones plus referenced ones."""
        return self.variables | frozenset(self.input_variables)

    async def render(self, values: Dict[str, Any]) -> str:
        """
        Substitute placeholders with `values`.

        Raises:
            TemplateRenderError: a required variable is missing or formatting failed.
        """
        for name in sorted(self.required_variables):
            if name not in values:
                raise TemplateRenderError("Missing template variable", variable=name)

        kwargs = {k: v for k, v in values.items() if k in self.required_variables}
        try:
            rendered = await self._prompt.aformat(**kwargs)
        except KeyError as e:
            raise TemplateRenderError("Missing template variable", variable=str(e.args[0])) from e
        except (ValueError, IndexError) as e:
            raise TemplateRenderError(f"Failed to render template: {e}") from e

        logger.debug(f"[Template] Rendered {len(rendered)} chars from {sorted(kwargs)}")
        return rendered

    def render_sync(self, values: Dict[str, Any]) -> str:
        """Render from synchronous code that is not inside a running event loop."""
        return asyncio.run(self.render(values))

    def __repr__(self) -> str:
        return f"CompiledTemplate(variables={sorted(self.variables)!r})"
