# flow_simulation/graph_view.py
# Read-only view of the process graph handed over by the diagram editor.
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import networkx as nx
from networkx.readwrite import json_graph

# Editor node types that take part in execution, mapped to the simulator's kinds
NODE_KINDS = {
    "process": "task",
    "task": "task",
    "event": "event",
    "gateway": "gateway",
}

GATEWAY_TYPES = ["exclusive", "parallel", "inclusive", "event-based", "complex"]

# Connectors that are not sequence flows
IGNORED_EDGE_TYPES = {"message-flow", "messageFlow", "association"}


@dataclass(frozen=True)
class NodeView:
    id: str
    kind: str  # 'event', 'task' or 'gateway'
    event_subtype: Optional[str] = None  # 'start', 'intermediate', 'end'
    gateway_subtype: Optional[str] = None  # see GATEWAY_TYPES
    label: str = ""

    @property
    def is_gateway(self) -> bool:
        return self.kind == "gateway"

    @property
    def is_start_event(self) -> bool:
        return self.kind == "event" and self.event_subtype == "start"

    @property
    def is_end_event(self) -> bool:
        return self.kind == "event" and self.event_subtype == "end"


@dataclass(frozen=True)
class EdgeView:
    id: str
    source: str
    target: str
    condition: str = ""
    is_default: bool = False

    @property
    def has_condition(self) -> bool:
        return bool(self.condition and self.condition.strip())


class ProcessGraph:
    """
    Wraps a networkx MultiDiGraph and exposes nodes and sequence flows to the simulator.

    Nodes carry 'kind', 'event_subtype', 'gateway_subtype' and 'label' attributes.
    Edges are keyed by their edge id and carry 'condition' and 'is_default'.
    """

    def __init__(self, graph: nx.MultiDiGraph):
        self._graph = graph
        self._nodes: Dict[str, NodeView] = {}
        for node_id, attrs in graph.nodes(data=True):
            self._nodes[node_id] = NodeView(
                id=node_id,
                kind=attrs.get("kind", "task"),
                event_subtype=attrs.get("event_subtype"),
                gateway_subtype=attrs.get("gateway_subtype"),
                label=attrs.get("label", "") or "",
            )

        # Outgoing and incoming flows in insertion (source) order
        self._outgoing: Dict[str, List[EdgeView]] = {node_id: [] for node_id in self._nodes}
        self._incoming: Dict[str, List[EdgeView]] = {node_id: [] for node_id in self._nodes}
        self._edges: Dict[str, EdgeView] = {}
        for source, target, key, attrs in graph.edges(keys=True, data=True):
            edge = EdgeView(
                id=str(key),
                source=source,
                target=target,
                condition=attrs.get("condition", "") or "",
                is_default=bool(attrs.get("is_default", False)),
            )
            self._edges[edge.id] = edge
            self._outgoing[source].append(edge)
            self._incoming[target].append(edge)

    @property
    def graph(self) -> nx.MultiDiGraph:
        return self._graph

    @property
    def nodes(self) -> List[NodeView]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[EdgeView]:
        return list(self._edges.values())

    def __len__(self):
        return len(self._nodes)

    def __contains__(self, node_id):
        return node_id in self._nodes

    def get_node(self, node_id: str) -> Optional[NodeView]:
        return self._nodes.get(node_id)

    def get_edge(self, edge_id: str) -> Optional[EdgeView]:
        return self._edges.get(edge_id)

    def outgoing_edges(self, node_id: str) -> List[EdgeView]:
        return list(self._outgoing.get(node_id, []))

    def incoming_edges(self, node_id: str) -> List[EdgeView]:
        return list(self._incoming.get(node_id, []))

    def start_events(self) -> List[NodeView]:
        return [node for node in self._nodes.values() if node.is_start_event]

    def end_events(self) -> List[NodeView]:
        return [node for node in self._nodes.values() if node.is_end_event]

    def first_start_event(self) -> Optional[NodeView]:
        return next(iter(self.start_events()), None)

    def to_node_link_data(self) -> Dict[str, Any]:
        """Returns the graph as networkx node-link data, ready for json.dump."""
        return json_graph.node_link_data(self._graph, edges="links")


def _node_attributes(node: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    # The editor keeps BPMN attributes in node['data']; flat dicts are accepted too
    data = node.get("data") or node
    node_type = data.get("nodeType") or data.get("kind") or node.get("type")
    kind = NODE_KINDS.get(node_type)
    if kind is None:
        return None

    attrs = {"kind": kind, "label": data.get("label", "") or ""}
    if kind == "event":
        attrs["event_subtype"] = data.get("eventType") or data.get("event_subtype") or "intermediate"
    elif kind == "gateway":
        gateway_type = data.get("gatewayType") or data.get("gateway_subtype") or "exclusive"
        if gateway_type not in GATEWAY_TYPES:
            logging.warning(f"Unknown gateway type '{gateway_type}' on node '{node.get('id')}'. Treating it as exclusive.")
            gateway_type = "exclusive"
        attrs["gateway_subtype"] = gateway_type
    return attrs


def build_process_graph(nodes: Iterable[Dict[str, Any]], edges: Iterable[Dict[str, Any]]) -> ProcessGraph:
    """
    Builds a ProcessGraph from the editor's node and edge dictionaries.

    Parameters:
        nodes: Editor nodes, e.g. {"id": "n1", "data": {"nodeType": "event", "eventType": "start"}}.
        edges: Editor edges, e.g. {"id": "e1", "source": "n1", "target": "n2",
               "data": {"condition": "amount > 10", "isDefault": False}}.

    Returns:
        ProcessGraph: The read-only view used by the simulator.
    """
    process_model = nx.MultiDiGraph()

    for node in nodes:
        node_id = node.get("id")
        if not node_id:
            raise ValueError(f"Diagram node without an id: {node}")
        attrs = _node_attributes(node)
        if attrs is None:
            continue
        process_model.add_node(node_id, **attrs)

    for edge in edges:
        edge_id = edge.get("id")
        if not edge_id:
            raise ValueError(f"Diagram edge without an id: {edge}")
        if edge.get("type") in IGNORED_EDGE_TYPES:
            continue

        source = edge.get("source")
        target = edge.get("target")
        if source not in process_model or target not in process_model:
            logging.warning(f"Skipping edge '{edge_id}': endpoint '{source}' -> '{target}' is not a process node.")
            continue

        data = edge.get("data") or {}
        process_model.add_edge(
            source,
            target,
            key=edge_id,
            condition=data.get("condition", edge.get("condition", "")) or "",
            is_default=bool(data.get("isDefault", edge.get("is_default", False))),
        )

    logging.info(f"Built process graph with {process_model.number_of_nodes()} nodes and {process_model.number_of_edges()} flows.")
    return ProcessGraph(process_model)


def load_diagram_json(json_file_path) -> ProcessGraph:
    """
    Loads a diagram exported by the editor ({"nodes": [...], "edges": [...], "metadata": {...}}).
    """
    path = Path(json_file_path)
    if not path.exists():
        raise FileNotFoundError(f"Diagram file not found: {path}")

    with open(path, "r") as file:
        diagram_data = json.load(file)

    nodes = diagram_data.get("nodes")
    edges = diagram_data.get("edges")
    if not isinstance(nodes, list) or not isinstance(edges, list):
        raise ValueError(f"Diagram file '{path}' must contain 'nodes' and 'edges' lists.")

    return build_process_graph(nodes, edges)
