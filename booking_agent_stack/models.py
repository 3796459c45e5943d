"""
Booking Agent Stack - Core Models
==================================

Pydantic models for the loaded prompt documents and for the resource
specification handed to the provisioning service. Resource models serialize
with camelCase keys, which is the shape the provisioning API expects.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from booking_agent_stack.templating import CompiledTemplate


# Function schemas are passed through untouched unless validated.
FunctionSchema = Dict[str, Any]


# =============================================================================
# Enums
# =============================================================================

class PromptType(str, Enum):
    """Agent orchestration stages that accept a prompt override."""
    PRE_PROCESSING = "PRE_PROCESSING"
    ORCHESTRATION = "ORCHESTRATION"
    POST_PROCESSING = "POST_PROCESSING"
    KNOWLEDGE_BASE_RESPONSE_GENERATION = "KNOWLEDGE_BASE_RESPONSE_GENERATION"


class PromptState(str, Enum):
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"


class PromptCreationMode(str, Enum):
    DEFAULT = "DEFAULT"
    OVERRIDDEN = "OVERRIDDEN"


class ChunkingStrategy(str, Enum):
    """How source documents are split before indexing."""
    FIXED_SIZE = "FIXED_SIZE"
    NONE = "NONE"


class AttributeType(str, Enum):
    STRING = "S"
    NUMBER = "N"
    BINARY = "B"


class BillingMode(str, Enum):
    PAY_PER_REQUEST = "PAY_PER_REQUEST"
    PROVISIONED = "PROVISIONED"


class RemovalPolicy(str, Enum):
    DESTROY = "DESTROY"
    RETAIN = "RETAIN"
    SNAPSHOT = "SNAPSHOT"


class ParameterType(str, Enum):
    """Types allowed for action group function parameters."""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    ARRAY = "array"


class ProvisioningStatus(str, Enum):
    SUCCESS = "success"
    MOCKED = "mocked"


# =============================================================================
# Loaded documents
# =============================================================================

class Prompt(BaseModel):
    """
    A prompt document loaded from YAML.

    `prompt_template` is only set when the source had a non-empty `template`.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(min_length=1)
    description: Optional[str] = None
    prompt_template: Optional[CompiledTemplate] = None
    input_variables: List[str] = Field(default_factory=list)


class FunctionParameter(BaseModel):
    """A single parameter of an action group function."""
    type: ParameterType
    description: Optional[str] = None
    required: bool = False


class FunctionDefinition(BaseModel):
    """Signature of a function the agent may call."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(min_length=1)
    description: Optional[str] = None
    parameters: Dict[str, FunctionParameter] = Field(default_factory=dict)
    require_confirmation: Optional[str] = None


class FunctionSchemaModel(BaseModel):
    """Declared structure of a function schema document, used for local validation."""
    functions: List[FunctionDefinition] = Field(min_length=1)


# =============================================================================
# Resource specification
# =============================================================================

class ResourceModel(BaseModel):
    """Base for resource descriptors: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AttributeSpec(ResourceModel):
    name: str
    type: AttributeType = AttributeType.STRING


class TableSpec(ResourceModel):
    """Key-value store holding reservation records."""
    id: str
    table_name: str
    partition_key: AttributeSpec
    billing_mode: BillingMode = BillingMode.PAY_PER_REQUEST
    removal_policy: RemovalPolicy = RemovalPolicy.DESTROY


class FunctionSpec(ResourceModel):
    """Handler function executing the action group calls."""
    id: str
    function_name: str
    runtime: str = "python3.12"
    entry: str
    index: str = "index.py"
    handler: str = "handler"
    environment: Dict[str, str] = Field(default_factory=dict)


class PermissionGrant(ResourceModel):
    """Permission for one resource to act on another."""
    grantee: str
    resource: str
    actions: List[str] = Field(default_factory=list)


class InferenceConfiguration(ResourceModel):
    temperature: float = 0.0
    top_p: float = 1
    top_k: int = 250
    maximum_length: int = 2048
    stop_sequences: List[str] = Field(default_factory=list)


class PromptConfiguration(ResourceModel):
    prompt_type: PromptType
    prompt_state: PromptState = PromptState.ENABLED
    prompt_creation_mode: PromptCreationMode = PromptCreationMode.OVERRIDDEN
    inference_configuration: Optional[InferenceConfiguration] = None
    base_prompt_template: Optional[str] = None


class PromptOverrideConfiguration(ResourceModel):
    prompt_configurations: List[PromptConfiguration] = Field(default_factory=list)


class ActionGroupExecutor(ResourceModel):
    function: str = Field(alias="lambda")


class ActionGroupSpec(ResourceModel):
    """Named set of functions exposed to the agent."""
    id: str
    action_group_name: str
    description: Optional[str] = None
    action_group_executor: ActionGroupExecutor
    action_group_state: PromptState = PromptState.ENABLED
    function_schema: FunctionSchema


class AgentKnowledgeBase(ResourceModel):
    """Association of a knowledge base to an agent, with its usage instruction."""
    knowledge_base_id: str
    description: str
    knowledge_base_state: PromptState = PromptState.ENABLED


class AgentSpec(ResourceModel):
    id: str
    name: str
    description: Optional[str] = None
    instruction: str
    foundation_model: str
    idle_session_ttl_in_seconds: int = 1800
    prompt_override_configuration: Optional[PromptOverrideConfiguration] = None
    action_groups: List[ActionGroupSpec] = Field(default_factory=list)
    knowledge_bases: List[AgentKnowledgeBase] = Field(default_factory=list)


class KnowledgeBaseSpec(ResourceModel):
    id: str
    name: str
    description: Optional[str] = None
    embeddings_model: str
    embeddings_dimensions: int = 1024
    instruction: Optional[str] = None


class BucketSpec(ResourceModel):
    id: str
    enforce_ssl: bool = True
    removal_policy: RemovalPolicy = RemovalPolicy.DESTROY
    auto_delete_objects: bool = True


class FixedSizeChunkingConfiguration(ResourceModel):
    max_tokens: int = 512
    overlap_percentage: int = 20


class ChunkingConfiguration(ResourceModel):
    chunking_strategy: ChunkingStrategy = ChunkingStrategy.FIXED_SIZE
    fixed_size_chunking_configuration: Optional[FixedSizeChunkingConfiguration] = None


class DataSourceSpec(ResourceModel):
    """Document source feeding the knowledge base."""
    id: str
    data_source_name: str
    bucket: str
    knowledge_base: str
    chunking_configuration: ChunkingConfiguration


class NagSuppression(ResourceModel):
    """A compliance rule deliberately waived for this stack."""
    id: str
    reason: str
    path: Optional[str] = None
    apply_to_children: bool = False


class StackSpec(ResourceModel):
    """
    Complete description of the resources to provision.

    Built once per run by the stack builder and read-only afterwards.
    """
    stack_name: str
    lang: str
    table: TableSpec
    action_group_function: FunctionSpec
    grants: List[PermissionGrant] = Field(default_factory=list)
    agent: AgentSpec
    knowledge_base: KnowledgeBaseSpec
    doc_bucket: BucketSpec
    data_source: DataSourceSpec
    suppressions: List[NagSuppression] = Field(default_factory=list)

    def to_template(self) -> Dict[str, Any]:
        """Serialize to the camelCase request body of the provisioning API."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


# =============================================================================
# Provisioning results
# =============================================================================

class ProvisioningResult(BaseModel):
    """Outcome of handing a stack spec to a provisioner."""
    stack_name: str
    status: ProvisioningStatus
    handles: Dict[str, str] = Field(default_factory=dict)
    output_path: Optional[str] = None
    latency_ms: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status in (ProvisioningStatus.SUCCESS, ProvisioningStatus.MOCKED)
