"""Workflow graph sources.

The engine only needs ``load_graph(workflow_id)``; storage and CRUD live
elsewhere. Two sources ship with the engine:
- InMemoryGraphSource: graphs registered in process (tests, embedding)
- FileGraphSource: one ``<workflow_id>.json`` file per workflow in a folder
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Union

from core.logging import get_logger
from models.workflow import WorkflowGraph
from services.execution.exceptions import InvalidGraph, WorkflowNotFound
from services.execution.graph import load_workflow_graph

logger = get_logger(__name__)


class GraphSource(Protocol):
    """Protocol for graph lookup."""

    async def load_graph(self, workflow_id: str) -> WorkflowGraph:
        """Return the parsed graph; raises WorkflowNotFound or InvalidGraph."""
        ...


class InMemoryGraphSource:
    """Graphs held in a dict keyed by workflow id."""

    def __init__(self, workflows: Optional[Dict[str, Union[Dict[str, Any], WorkflowGraph]]] = None):
        self._workflows: Dict[str, WorkflowGraph] = {}
        for workflow_id, document in (workflows or {}).items():
            self.add(workflow_id, document)

    def add(self, workflow_id: str, document: Union[Dict[str, Any], WorkflowGraph]) -> WorkflowGraph:
        graph = load_workflow_graph(document)
        self._workflows[workflow_id] = graph
        return graph

    async def load_graph(self, workflow_id: str) -> WorkflowGraph:
        graph = self._workflows.get(workflow_id)
        if graph is None:
            raise WorkflowNotFound(workflow_id)
        return graph


class FileGraphSource:
    """Graphs read from JSON files in a folder."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def list_workflows(self) -> List[str]:
        if not self.directory.exists():
            logger.warning("Workflows directory not found", directory=str(self.directory))
            return []
        return [file.stem for file in sorted(self.directory.glob("*.json"))]

    def _path_for(self, workflow_id: str) -> Path:
        # Workflow ids are file stems; reject anything that could leave the folder
        if not workflow_id or Path(workflow_id).name != workflow_id:
            raise WorkflowNotFound(workflow_id)
        return self.directory / f"{workflow_id}.json"

    async def load_graph(self, workflow_id: str) -> WorkflowGraph:
        path = self._path_for(workflow_id)
        if not path.is_file():
            raise WorkflowNotFound(workflow_id)

        try:
            with open(path, encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse workflow file", path=str(path), error=str(e))
            raise InvalidGraph(f"Workflow file {path.name} is not valid JSON: {e}") from e

        if isinstance(document, dict):
            document.setdefault("id", workflow_id)
        logger.debug("Loaded workflow file", workflow_id=workflow_id, path=str(path))
        return load_workflow_graph(document)
