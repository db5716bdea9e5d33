"""Per-run store of node outputs."""

from typing import Any, Dict, Iterable, List, Optional

from .exceptions import WorkflowEngineError


class ExecutionContext:
    """Maps node id to the output that node produced in this run.

    Each node writes once. Insertion order is production order, which is
    what downstream nodes rely on when they look for "the most recent"
    upstream value. Owned by a single run; never shared.
    """

    def __init__(self, run_id: str):
        self.run_id = run_id
        self._outputs: Dict[str, Dict[str, Any]] = {}

    def get(self, node_id: str) -> Optional[Dict[str, Any]]:
        return self._outputs.get(node_id)

    def set(self, node_id: str, output: Dict[str, Any]) -> None:
        if node_id in self._outputs:
            raise WorkflowEngineError(f"Output for node {node_id} already recorded in run {self.run_id}")
        self._outputs[node_id] = output

    def has(self, node_id: str) -> bool:
        return node_id in self._outputs

    def outputs_for(self, node_ids: Iterable[str]) -> List[Dict[str, Any]]:
        """Outputs of the given nodes that exist, oldest first."""
        wanted = set(node_ids)
        return [output for node_id, output in self._outputs.items() if node_id in wanted]

    def __len__(self) -> int:
        return len(self._outputs)
