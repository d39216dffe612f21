"""Canvas geometry: where nodes, the END terminal and connections are drawn."""

from dataclasses import dataclass
from typing import Iterable, Sequence

from agentgraph.editor.viewport import Point
from agentgraph.models.workflow_graph import END_NODE

NODE_WIDTH = 210
NODE_HEIGHT = 100
END_NODE_WIDTH = 120
END_NODE_HEIGHT = 72


@dataclass(frozen=True)
class EdgeSegment:
    key: str
    x1: float
    y1: float
    x2: float
    y2: float


@dataclass(frozen=True)
class OrchestrationLink:
    """Curved supervisor -> member line (routing, not a control-flow edge)."""

    key: str
    from_node_key: str
    to_node_key: str
    start: Point
    end: Point
    control: Point


def node_center(node) -> Point:
    return Point(node.x + NODE_WIDTH / 2, node.y + NODE_HEIGHT / 2)


def end_node_position(nodes: Sequence) -> Point:
    """END sits to the right of the rightmost node, at the average height."""
    if not nodes:
        return Point(380 + 240, 200)
    max_x = max(node.x + NODE_WIDTH for node in nodes)
    avg_y = sum(node.y for node in nodes) / len(nodes)
    return Point(max_x + 240, max(80, round(avg_y)))


def end_node_center(nodes: Sequence) -> Point:
    position = end_node_position(nodes)
    return Point(position.x + END_NODE_WIDTH / 2, position.y + END_NODE_HEIGHT / 2)


def edge_segments(nodes: Sequence, edges: Iterable) -> list[EdgeSegment]:
    """Straight center-to-center lines; edges with a missing endpoint are skipped."""
    node_by_key = {node.node_key: node for node in nodes}
    end_center = end_node_center(nodes)
    segments = []
    for edge in edges:
        from_node = node_by_key.get(edge.from_node)
        if from_node is None:
            continue
        if edge.to_node == END_NODE:
            target = end_center
        elif edge.to_node in node_by_key:
            target = node_center(node_by_key[edge.to_node])
        else:
            continue
        source = node_center(from_node)
        segments.append(EdgeSegment(
            key=f"{edge.from_node}->{edge.to_node}",
            x1=source.x,
            y1=source.y,
            x2=target.x,
            y2=target.y,
        ))
    return segments


def orchestration_links(nodes: Sequence) -> list[OrchestrationLink]:
    worker_by_key = {node.node_key: node for node in nodes if node.node_type == "worker"}
    links = []
    for supervisor in nodes:
        if supervisor.node_type != "supervisor":
            continue
        members = supervisor.config.get("members")
        if not isinstance(members, list):
            continue
        workers = [
            worker_by_key[member.strip()]
            for member in members
            if isinstance(member, str) and member.strip() in worker_by_key
        ]
        for index, worker in enumerate(workers):
            start = node_center(supervisor)
            end = node_center(worker)
            direction = 1 if start.x <= end.x else -1
            offset = 90 + (index % 3) * 22
            links.append(OrchestrationLink(
                key=f"{supervisor.node_key}->{worker.node_key}",
                from_node_key=supervisor.node_key,
                to_node_key=worker.node_key,
                start=start,
                end=end,
                control=Point(
                    (start.x + end.x) / 2 + direction * offset,
                    (start.y + end.y) / 2 - offset * 0.34,
                ),
            ))
    return links
