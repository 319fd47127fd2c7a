"""GraphML workflow loading.

A workflow file declares one ``<node>`` per controller with its gains as
``<data key="...">`` children::

    <graphml>
      <graph>
        <node id="n1">
          <data key="kp">1.0</data>
          <data key="ki">0.1</data>
          <data key="kd">0.01</data>
        </node>
      </graph>
    </graphml>

Element names are matched without their XML namespace, so documents that
declare the standard GraphML namespace load the same way.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path

from .config import ConcoreConfig
from .node import PIDNode

GAIN_KEYS = ("kp", "ki", "kd")


@dataclass(frozen=True)
class NodeConfig:
    id: str
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0

    def build(self) -> PIDNode:
        """Create a node with these gains and zeroed state."""
        return PIDNode(self.id, self.kp, self.ki, self.kd)


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _parse_gain(node_elem: ET.Element, node_id: str, key: str, default: float) -> float:
    for data_elem in node_elem:
        if _local_name(data_elem.tag) == "data" and data_elem.get("key") == key:
            text = (data_elem.text or "").strip()
            try:
                return float(text)
            except ValueError as exc:
                raise ValueError(
                    f"Node '{node_id}' has a non-numeric value for '{key}': {text!r}.\n"
                    f"Gains must be decimal literals such as 0.5 or 1e-3."
                ) from exc
    return default


def load_graph(path: str | Path, config: ConcoreConfig | None = None) -> list[NodeConfig]:
    """Parse a GraphML file into node configurations, in document order.

    Missing gains fall back to ``config.default_kp/ki/kd`` (1.0, 0.0, 0.0).

    Raises:
        FileNotFoundError: ``path`` does not exist.
        ValueError: The file is not well-formed XML, a node has no ``id`` or
            a gain is not a decimal number.
    """
    config = config or ConcoreConfig()
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Workflow graph not found at: {path}")

    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise ValueError(
            f"Failed to parse workflow graph {path}.\n"
            f"Error: {exc}\n"
            f"The file may be corrupted or not GraphML."
        ) from exc

    defaults = {"kp": config.default_kp, "ki": config.default_ki, "kd": config.default_kd}
    nodes: list[NodeConfig] = []
    for graph_elem in root:
        if _local_name(graph_elem.tag) != "graph":
            continue
        for node_elem in graph_elem:
            if _local_name(node_elem.tag) != "node":
                continue
            node_id = node_elem.get("id")
            if not node_id:
                raise ValueError(f"Workflow graph {path} contains a node without an 'id' attribute.")
            gains = {key: _parse_gain(node_elem, node_id, key, defaults[key]) for key in GAIN_KEYS}
            nodes.append(NodeConfig(id=node_id, **gains))
    return nodes


def load_nodes(path: str | Path, config: ConcoreConfig | None = None) -> list[PIDNode]:
    return [node_config.build() for node_config in load_graph(path, config)]
