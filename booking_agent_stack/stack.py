"""
Booking Agent Stack - Stack Builder
====================================

Assembles the resource specification of the booking assistant:

    metadata table ──► action group function ──► action group ──┐
                                                                 ├──► agent
    doc bucket ──► data source ──► knowledge base ──────────────┘

Prompt texts come from the locale's prompt folder. The knowledge base
instruction is a rendered template; the builder awaits the render before
attaching the knowledge base to the agent, so the spec never carries an
unset instruction.
"""

import asyncio
import json
import logging
import time
from typing import Any, List, Optional

from booking_agent_stack.config import Settings
from booking_agent_stack.errors import MalformedSourceError, TemplateRenderError
from booking_agent_stack.loader import load_functions_schema, load_prompt, read_yaml
from booking_agent_stack.localization import normalize_language, resolve_localization_dir
from booking_agent_stack.models import (
    ActionGroupExecutor,
    ActionGroupSpec,
    AgentKnowledgeBase,
    AgentSpec,
    AttributeSpec,
    BucketSpec,
    ChunkingConfiguration,
    ChunkingStrategy,
    DataSourceSpec,
    FixedSizeChunkingConfiguration,
    FunctionSpec,
    InferenceConfiguration,
    KnowledgeBaseSpec,
    NagSuppression,
    PermissionGrant,
    Prompt,
    PromptConfiguration,
    PromptCreationMode,
    PromptOverrideConfiguration,
    PromptState,
    PromptType,
    StackSpec,
    TableSpec,
)

logger = logging.getLogger(__name__)


AGENT_PROMPT_FILE = "booking_agent.yaml"
POST_PROCESSING_PROMPT_FILE = "booking_agent-postprocessing.yaml"
ACTION_GROUP_PROMPT_FILE = "booking_agent_action_group.yaml"
KB_PROMPT_FILE = "menu_kb_instructions.yaml"

ACTION_GROUP_FUNCTION_ENTRY = "functions/booking-agent-kb"
IDLE_SESSION_TTL_SECONDS = 1800
CHUNK_MAX_TOKENS = 512
CHUNK_OVERLAP_PERCENTAGE = 20

# Actions granted to the handler function on the metadata table
TABLE_READ_WRITE_ACTIONS = [
    "dynamodb:BatchGetItem",
    "dynamodb:GetRecords",
    "dynamodb:GetShardIterator",
    "dynamodb:Query",
    "dynamodb:GetItem",
    "dynamodb:Scan",
    "dynamodb:ConditionCheckItem",
    "dynamodb:BatchWriteItem",
    "dynamodb:PutItem",
    "dynamodb:UpdateItem",
    "dynamodb:DeleteItem",
    "dynamodb:DescribeTable",
]

POST_PROCESSING_INFERENCE = InferenceConfiguration(
    temperature=0.0,
    top_p=1,
    top_k=250,
    maximum_length=2048,
    stop_sequences=["/n/nHuman"],
)


def serialize_prompt_document(document: Any) -> str:
    """Serialize a raw prompt document to the string form used as a base prompt template."""
    return json.dumps(document, indent=4, ensure_ascii=False)


def default_suppressions(stack_name: str) -> List[NagSuppression]:
    """Compliance findings accepted for this stack."""
    return [
        NagSuppression(
            id="AwsSolutions-IAM4",
            reason="Lambda default policy is acceptable for this demo",
        ),
        NagSuppression(
            id="AwsSolutions-DDB3",
            reason="Point-in-time Recovery not required for this demo",
        ),
        NagSuppression(
            id="AwsSolutions-S1",
            reason="For this demo there's no requirement to log S3 server access",
            path=f"/{stack_name}/DocBucket/Resource",
        ),
        NagSuppression(
            id="AwsSolutions-IAM5",
            reason="Policy defined by bedrock construct",
            path=f"/{stack_name}",
            apply_to_children=True,
        ),
    ]


class BookingStackBuilder:
    """
    Builds the `StackSpec` for one locale.

    Usage:
        builder = BookingStackBuilder(Settings(), lang="ko")
        stack = await builder.build()
    """

    def __init__(self, settings: Optional[Settings] = None, lang: Optional[str] = None):
        """
        Args:
            settings: Build settings. Defaults to settings read from the environment.
            lang: Prompt locale. Defaults to `settings.lang`.
        """
        self.settings = settings or Settings()
        self.lang = normalize_language(lang if lang is not None else self.settings.lang)
        self.localization_dir = resolve_localization_dir(self.lang, self.settings.prompts_dir)

    # =========================================================================
    # Public API
    # =========================================================================

    async def build(self) -> StackSpec:
        """Load every document and assemble the stack spec."""
        start_time = time.time()
        stack_name = self.settings.stack_name
        logger.info(
            f"[StackBuilder] Building {stack_name} (lang={self.lang.value}) "
            f"from {self.localization_dir}"
        )

        table = self._build_table()
        agent = self._build_agent()

        function = self._build_action_group_function(table)
        grant = PermissionGrant(
            grantee=function.id,
            resource=table.id,
            actions=list(TABLE_READ_WRITE_ACTIONS),
        )
        agent.action_groups.append(self._build_action_group(function))

        kb_path = self.localization_dir / KB_PROMPT_FILE
        kb_prompt = load_prompt(kb_path)
        if kb_prompt.prompt_template is None:
            raise MalformedSourceError(
                kb_path, "knowledge base prompt requires a template", field="template"
            )
        knowledge_base = self._build_knowledge_base(kb_prompt)
        doc_bucket = BucketSpec(id="DocBucket")
        data_source = self._build_data_source(agent, doc_bucket, knowledge_base)

        # The instruction must be resolved before the knowledge base joins the agent.
        knowledge_base.instruction = await self._render_kb_instruction(kb_prompt, knowledge_base)
        agent.knowledge_bases.append(
            AgentKnowledgeBase(
                knowledge_base_id=knowledge_base.name,
                description=knowledge_base.instruction,
            )
        )

        stack = StackSpec(
            stack_name=stack_name,
            lang=self.lang.value,
            table=table,
            action_group_function=function,
            grants=[grant],
            agent=agent,
            knowledge_base=knowledge_base,
            doc_bucket=doc_bucket,
            data_source=data_source,
            suppressions=default_suppressions(stack_name),
        )

        latency_ms = int((time.time() - start_time) * 1000)
        logger.info(f"[StackBuilder] {stack_name} assembled in {latency_ms}ms")
        return stack

    def synthesize(self) -> StackSpec:
        """Synchronous entry point: build the stack and wait for it."""
        return asyncio.run(self.build())

    # =========================================================================
    # Resources
    # =========================================================================

    def _build_table(self) -> TableSpec:
        """Table storing reservation records, keyed by booking id."""
        return TableSpec(
            id="metadata",
            table_name=f"{self.settings.stack_name}-metadata",
            partition_key=AttributeSpec(name="booking_id"),
        )

    def _build_agent(self) -> AgentSpec:
        """Agent resource with its instruction and optional post-processing override."""
        path = self.localization_dir / AGENT_PROMPT_FILE
        prompt = load_prompt(path)
        if prompt.prompt_template is None:
            raise MalformedSourceError(path, "agent prompt requires a template", field="template")

        return AgentSpec(
            id="BookingManagementAgent",
            name=prompt.name,
            description=prompt.description,
            instruction=prompt.prompt_template.template,
            foundation_model=self.settings.foundation_model,
            idle_session_ttl_in_seconds=IDLE_SESSION_TTL_SECONDS,
            prompt_override_configuration=self._build_prompt_override(),
        )

    def _build_prompt_override(self) -> Optional[PromptOverrideConfiguration]:
        """Post-processing override, used for localized answers. None if the locale has none."""
        document = read_yaml(self.localization_dir / POST_PROCESSING_PROMPT_FILE)
        if not document:
            logger.info(f"[StackBuilder] No post-processing override for lang={self.lang.value}")
            return None

        logger.info(f"[StackBuilder] Post-processing override enabled for lang={self.lang.value}")
        return PromptOverrideConfiguration(
            prompt_configurations=[
                PromptConfiguration(
                    prompt_type=PromptType.POST_PROCESSING,
                    prompt_state=PromptState.ENABLED,
                    prompt_creation_mode=PromptCreationMode.OVERRIDDEN,
                    inference_configuration=POST_PROCESSING_INFERENCE.model_copy(deep=True),
                    base_prompt_template=serialize_prompt_document(document),
                )
            ]
        )

    def _build_action_group_function(self, table: TableSpec) -> FunctionSpec:
        """
        Function executing the agent's booking actions:
            - get_booking_details(booking_id)
            - create_booking(date, name, hour, num_guests)
            - delete_booking(booking_id)
        """
        return FunctionSpec(
            id="BookingManagementFunction",
            function_name=f"{self.settings.stack_name}-BookingManagementFunction",
            entry=ACTION_GROUP_FUNCTION_ENTRY,
            environment={"DDB_TABLE_NAME": table.table_name},
        )

    def _build_action_group(self, function: FunctionSpec) -> ActionGroupSpec:
        prompt = load_prompt(self.localization_dir / ACTION_GROUP_PROMPT_FILE)
        schema = load_functions_schema(
            self.settings.function_schema_path,
            validate=self.settings.validate_function_schema,
        )
        return ActionGroupSpec(
            id="BookingActionGroup",
            action_group_name=prompt.name,
            description=prompt.description,
            action_group_executor=ActionGroupExecutor(function=function.function_name),
            action_group_state=PromptState.ENABLED,
            function_schema=schema,
        )

    def _build_knowledge_base(self, prompt: Prompt) -> KnowledgeBaseSpec:
        return KnowledgeBaseSpec(
            id="KnowledgeBase",
            name=f"{self.settings.stack_name}-KnowledgeBase",
            description=prompt.description,
            embeddings_model=self.settings.embeddings_model,
        )

    def _build_data_source(
        self,
        agent: AgentSpec,
        bucket: BucketSpec,
        knowledge_base: KnowledgeBaseSpec,
    ) -> DataSourceSpec:
        return DataSourceSpec(
            id="DataSource",
            data_source_name=f"{agent.name}-kb-docs",
            bucket=bucket.id,
            knowledge_base=knowledge_base.id,
            chunking_configuration=ChunkingConfiguration(
                chunking_strategy=ChunkingStrategy.FIXED_SIZE,
                fixed_size_chunking_configuration=FixedSizeChunkingConfiguration(
                    max_tokens=CHUNK_MAX_TOKENS,
                    overlap_percentage=CHUNK_OVERLAP_PERCENTAGE,
                ),
            ),
        )

    async def _render_kb_instruction(
        self, prompt: Prompt, knowledge_base: KnowledgeBaseSpec
    ) -> str:
        """Render the knowledge base instruction. Any failure aborts the build."""
        instruction = await prompt.prompt_template.render({"kb_name": knowledge_base.name})
        if not instruction.strip():
            raise TemplateRenderError("Knowledge base instruction rendered empty")
        return instruction
