"""Pydantic models for workflow nodes with discriminated unions.

Each node type gets its own model with a typed config, and the master
``WorkflowNode`` union routes on the ``type`` field. Config values are
coerced when the graph is loaded, so malformed settings are rejected before
any node runs. Presence of required settings is still checked by the
handlers, because several of them can be inherited from upstream outputs.

Config keys use the editor's camelCase names as aliases; snake_case names
are accepted too.
"""

from typing import Literal, Union, Annotated, Optional, Dict, Any
from pydantic import BaseModel, BeforeValidator, Field, field_validator

from constants import (
    DEFAULT_AI_MAX_TOKENS,
    DEFAULT_AI_TEMPERATURE,
    DEFAULT_TOKEN_DECIMALS,
)


def _coerce_amount(value: Any) -> Optional[str]:
    """Amounts travel as decimal strings; numbers are converted, blanks dropped."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("amount must be a number or a numeric string")
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value.strip() or None
    raise ValueError("amount must be a number or a numeric string")


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


Amount = Annotated[Optional[str], BeforeValidator(_coerce_amount)]
OptionalText = Annotated[Optional[str], BeforeValidator(_blank_to_none)]


# =============================================================================
# BASE MODELS
# =============================================================================

class BaseNodeConfig(BaseModel):
    """Base class for all node configs."""
    model_config = {"extra": "allow", "populate_by_name": True, "frozen": True}


class BaseNode(BaseModel):
    """Fields shared by every node variant."""
    model_config = {"extra": "allow", "frozen": True}

    id: str = Field(min_length=1)
    label: Optional[str] = None

    @field_validator("config", mode="before", check_fields=False)
    @classmethod
    def _missing_config(cls, v):
        return {} if v is None else v

    @property
    def display_name(self) -> str:
        return self.label or self.type


# =============================================================================
# CONFIG MODELS
# =============================================================================

class TriggerConfig(BaseNodeConfig):
    """Trigger nodes take no settings."""


class TransferConfig(BaseNodeConfig):
    """Native or ERC20 value transfer."""
    chain: OptionalText = None
    recipient: OptionalText = None
    to: OptionalText = None
    amount: Amount = None
    token: OptionalText = None
    token_symbol: OptionalText = Field(default=None, alias="tokenSymbol")

    @property
    def resolved_recipient(self) -> Optional[str]:
        # The workflow generator writes 'to', the editor writes 'recipient'
        return self.recipient or self.to


class SwapConfig(BaseNodeConfig):
    """Token swap through the chain's router."""
    chain: OptionalText = None
    from_token: OptionalText = Field(default=None, alias="fromToken")
    to_token: OptionalText = Field(default=None, alias="toToken")
    amount: Amount = None
    slippage: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    from_token_decimals: int = Field(default=DEFAULT_TOKEN_DECIMALS, alias="fromTokenDecimals", ge=0, le=36)
    to_token_decimals: int = Field(default=DEFAULT_TOKEN_DECIMALS, alias="toTokenDecimals", ge=0, le=36)


class ConditionConfig(BaseNodeConfig):
    """Numeric comparison between two operands."""
    left_value: Any = Field(default=None, alias="leftValue")
    right_value: Any = Field(default=None, alias="rightValue")
    operator: str = "=="


class AIConfig(BaseNodeConfig):
    """Chat completion, optionally delegated to an agent."""
    prompt: OptionalText = None
    system_prompt: OptionalText = Field(default=None, alias="systemPrompt")
    agent_address: OptionalText = Field(default=None, alias="agentAddress")
    temperature: float = Field(default=DEFAULT_AI_TEMPERATURE, ge=0.0, le=2.0)
    max_tokens: int = Field(default=DEFAULT_AI_MAX_TOKENS, alias="maxTokens", ge=1)


class ExternalToolConfig(BaseNodeConfig):
    """Tool call on a directly integrated server or through an agent."""
    mcp_server: OptionalText = Field(default=None, alias="mcpServer")
    tool: OptionalText = None
    agent_address: OptionalText = Field(default=None, alias="agentAddress")
    parameters: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("parameters", mode="before")
    @classmethod
    def _missing_parameters(cls, v):
        return {} if v is None else v


class StakingConfig(BaseNodeConfig):
    """Stake delegation to a validator."""
    operation: OptionalText = None
    amount: Amount = None
    validator_address: OptionalText = Field(default=None, alias="validatorAddress")
    staking_contract: OptionalText = Field(default=None, alias="stakingContract")


# =============================================================================
# NODE MODELS
# =============================================================================

class TriggerNode(BaseNode):
    type: Literal["trigger"]
    config: TriggerConfig = Field(default_factory=TriggerConfig)


class TransferNode(BaseNode):
    type: Literal["transfer"]
    config: TransferConfig = Field(default_factory=TransferConfig)


class SwapNode(BaseNode):
    type: Literal["swap"]
    config: SwapConfig = Field(default_factory=SwapConfig)


class ConditionNode(BaseNode):
    type: Literal["condition"]
    config: ConditionConfig = Field(default_factory=ConditionConfig)


class AINode(BaseNode):
    type: Literal["ai"]
    config: AIConfig = Field(default_factory=AIConfig)


class ExternalToolNode(BaseNode):
    type: Literal["external-tool", "mcp"]
    config: ExternalToolConfig = Field(default_factory=ExternalToolConfig)


class StakingNode(BaseNode):
    type: Literal["staking"]
    config: StakingConfig = Field(default_factory=StakingConfig)


WorkflowNode = Annotated[
    Union[
        TriggerNode,
        TransferNode,
        SwapNode,
        ConditionNode,
        AINode,
        ExternalToolNode,
        StakingNode,
    ],
    Field(discriminator="type")
]
