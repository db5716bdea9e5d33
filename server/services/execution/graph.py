"""Graph loading and the traversal index.

The index is built once per workflow before any run starts. Everything the
walker needs (node lookup, edge lists in document order, the trigger) is
precomputed here, and structural defects are reported as InvalidGraph.
"""

from collections import Counter
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Tuple

from pydantic import ValidationError

from constants import TRIGGER_NODE_TYPE
from core.logging import get_logger
from models.workflow import Edge, WorkflowGraph
from .exceptions import InvalidGraph

logger = get_logger(__name__)


@dataclass(frozen=True)
class GraphIndex:
    """Read-only lookup structures over a validated graph."""
    graph: WorkflowGraph
    node_by_id: Mapping[str, Any]
    outgoing_edges_by_source: Mapping[str, Tuple[Edge, ...]]
    incoming_edges_by_target: Mapping[str, Tuple[Edge, ...]]
    trigger: Any

    def outgoing(self, node_id: str) -> Tuple[Edge, ...]:
        return self.outgoing_edges_by_source.get(node_id, ())

    def incoming(self, node_id: str) -> Tuple[Edge, ...]:
        return self.incoming_edges_by_target.get(node_id, ())


def load_workflow_graph(document: Dict[str, Any]) -> WorkflowGraph:
    """Parse a raw graph document, coercing node configs by type.

    Raises:
        InvalidGraph: unknown node type, malformed config value, or bad shape
    """
    if isinstance(document, WorkflowGraph):
        return document
    if not isinstance(document, dict):
        raise InvalidGraph(f"Workflow document must be an object, got {type(document).__name__}")
    try:
        return WorkflowGraph.model_validate(document)
    except ValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidGraph(f"Invalid workflow document: {errors}") from e


def build_index(graph: WorkflowGraph) -> GraphIndex:
    """Validate structure and build lookup tables.

    Fails when there is no trigger, more than one trigger, duplicate node ids,
    an edge endpoint that is not a node, or an edge pointing into the trigger.
    Cycles are not rejected here; the walker visits each node at most once.
    """
    duplicates = [node_id for node_id, count in Counter(n.id for n in graph.nodes).items() if count > 1]
    if duplicates:
        raise InvalidGraph(f"Duplicate node ids: {', '.join(sorted(duplicates))}")

    node_by_id = {node.id: node for node in graph.nodes}

    triggers = [node for node in graph.nodes if node.type == TRIGGER_NODE_TYPE]
    if not triggers:
        raise InvalidGraph("No trigger node found in workflow")
    if len(triggers) > 1:
        raise InvalidGraph(
            f"Workflow has {len(triggers)} trigger nodes; exactly one is required"
        )
    trigger = triggers[0]

    outgoing: Dict[str, List[Edge]] = {}
    incoming: Dict[str, List[Edge]] = {}
    for edge in graph.edges:
        for endpoint in (edge.source, edge.target):
            if endpoint not in node_by_id:
                raise InvalidGraph(
                    f"Edge {edge.id or f'{edge.source}->{edge.target}'} references unknown node '{endpoint}'"
                )
        if edge.target == trigger.id:
            raise InvalidGraph(f"Trigger node '{trigger.id}' cannot have incoming edges")
        outgoing.setdefault(edge.source, []).append(edge)
        incoming.setdefault(edge.target, []).append(edge)

    logger.debug("Graph index built", workflow_id=graph.id,
                 node_count=len(node_by_id), edge_count=len(graph.edges))

    return GraphIndex(
        graph=graph,
        node_by_id=MappingProxyType(node_by_id),
        outgoing_edges_by_source=MappingProxyType({k: tuple(v) for k, v in outgoing.items()}),
        incoming_edges_by_target=MappingProxyType({k: tuple(v) for k, v in incoming.items()}),
        trigger=trigger,
    )
