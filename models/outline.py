"""Outline / mind-map tree model."""

import uuid
from dataclasses import dataclass, field, replace
from typing import Optional

from models.enums import NodeType

# Fixed namespace so derived ids are stable across processes
_NODE_NAMESPACE = uuid.UUID("6f1c2b9e-3d4a-5e8f-9a0b-1c2d3e4f5a6b")


@dataclass
class OutlineNode:
    """A node in an outline tree (book -> acts -> chapters, or a setting map)."""
    name: str = ""
    type: NodeType = NodeType.OTHER
    description: str = ""
    id: Optional[str] = None
    children: list["OutlineNode"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "OutlineNode":
        """Build a tree from model/backend JSON, tolerating missing fields."""
        if not isinstance(data, dict):
            raise TypeError(f"Outline node must be a JSON object, got {type(data).__name__}")
        children = data.get("children") or []
        node_id = data.get("id")
        return cls(
            name=str(data.get("name") or data.get("title") or ""),
            type=NodeType.parse(data.get("type")),
            description=str(data.get("description") or ""),
            id=str(node_id) if node_id not in (None, "") else None,
            children=[cls.from_dict(c) for c in children if isinstance(c, dict)],
        )

    def to_dict(self) -> dict:
        result = {
            "name": self.name,
            "type": self.type.value,
            "description": self.description,
            "children": [c.to_dict() for c in self.children],
        }
        if self.id:
            result["id"] = self.id
        return result

    def walk(self):
        """Yield this node and all descendants, depth first."""
        yield self
        for child in self.children:
            yield from child.walk()


def derive_node_id(parent_id: str, index: int, name: str) -> str:
    return uuid.uuid5(_NODE_NAMESPACE, f"{parent_id}/{index}/{name}").hex[:12]


def assign_node_ids(node: OutlineNode, parent_id: str = "root", index: int = 0) -> OutlineNode:
    """Return a copy of the tree where every node has a non-empty id.

    Ids already present are kept as-is; missing ones are derived from the
    parent id, sibling index and name, so the pass is idempotent.
    """
    node_id = node.id or derive_node_id(parent_id, index, node.name)
    children = [assign_node_ids(child, node_id, i) for i, child in enumerate(node.children)]
    return replace(node, id=node_id, children=children)


def assign_ids_to_list(nodes: list[OutlineNode], parent_id: str = "root") -> list[OutlineNode]:
    return [assign_node_ids(n, parent_id, i) for i, n in enumerate(nodes)]
