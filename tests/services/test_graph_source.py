"""
Unit tests for file and in-memory graph sources
"""

import json

import pytest

from services.execution import InvalidGraph, WorkflowNotFound
from services.graph_source import FileGraphSource, InMemoryGraphSource

WORKFLOW = {
    "name": "Daily check",
    "nodes": [{"id": "t", "type": "trigger"}, {"id": "a", "type": "ai", "config": {"prompt": "hi"}}],
    "edges": [{"from": "t", "to": "a"}],
}


@pytest.mark.asyncio
async def test_file_source_loads_and_defaults_id(tmp_path):
    (tmp_path / "daily.json").write_text(json.dumps(WORKFLOW), encoding="utf-8")
    source = FileGraphSource(tmp_path)

    graph = await source.load_graph("daily")

    assert graph.id == "daily"
    assert graph.name == "Daily check"
    assert [n.id for n in graph.nodes] == ["t", "a"]
    assert source.list_workflows() == ["daily"]


@pytest.mark.asyncio
async def test_file_source_missing_and_traversal(tmp_path):
    source = FileGraphSource(tmp_path)
    with pytest.raises(WorkflowNotFound):
        await source.load_graph("nope")
    with pytest.raises(WorkflowNotFound):
        await source.load_graph("../etc/passwd")


@pytest.mark.asyncio
async def test_file_source_bad_json(tmp_path):
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(InvalidGraph, match="not valid JSON"):
        await FileGraphSource(tmp_path).load_graph("broken")


def test_missing_directory_lists_nothing(tmp_path):
    assert FileGraphSource(tmp_path / "absent").list_workflows() == []


@pytest.mark.asyncio
async def test_in_memory_source():
    source = InMemoryGraphSource({"daily": WORKFLOW})
    graph = await source.load_graph("daily")
    assert graph.nodes[1].config.prompt == "hi"

    with pytest.raises(WorkflowNotFound):
        await source.load_graph("other")
    with pytest.raises(InvalidGraph):
        source.add("bad", {"nodes": [{"id": "x", "type": "nope"}]})
