"""Workflow graph document models."""

from typing import Optional, Tuple
from pydantic import AliasChoices, BaseModel, Field

from models.nodes import WorkflowNode


class Edge(BaseModel):
    """Directed connection between two nodes.

    ``from``/``to`` are the names the persisted graphs use; the editor's
    ``source``/``target`` are accepted as well.
    """
    model_config = {"extra": "allow", "populate_by_name": True, "frozen": True}

    id: Optional[str] = None
    source: str = Field(validation_alias=AliasChoices("from", "source"))
    target: str = Field(validation_alias=AliasChoices("to", "target"))
    source_handle: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("sourceHandle", "source_handle")
    )
    target_handle: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("targetHandle", "target_handle")
    )


class WorkflowGraph(BaseModel):
    """Immutable workflow definition handed to the engine."""
    model_config = {"extra": "allow", "frozen": True}

    id: Optional[str] = None
    name: Optional[str] = None
    nodes: Tuple[WorkflowNode, ...] = ()
    edges: Tuple[Edge, ...] = ()
