"""In-memory category tree built from parent pointers.

The parent pointers are the source of truth; nested-set bounds (lft/rgt) and
depth are a derived index computed here and persisted by ConsistencyGuard.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from ..core.exceptions import CategoryNotFound, StructuralViolation


@dataclass
class TreeNode:
    id: int
    parent_id: Optional[int]
    sort: int = 0
    name: str = ""
    slug: str = ""
    children: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class Bounds:
    lft: int
    rgt: int
    depth: int


class CategoryTree:
    """Arena of category nodes indexed by id."""

    def __init__(self, nodes: Iterable[TreeNode]):
        self.nodes: Dict[int, TreeNode] = {node.id: node for node in nodes}
        self.roots: List[int] = []
        # Nodes whose parent chain never reaches a root
        self.detached: List[int] = []
        self._link()

    @classmethod
    def from_categories(cls, categories: Iterable) -> "CategoryTree":
        return cls(
            TreeNode(
                id=c.id,
                parent_id=c.parent_id,
                sort=c.sort,
                name=c.name,
                slug=c.slug,
            )
            for c in categories
        )

    def _sibling_key(self, node_id: int) -> Tuple[int, str, int]:
        node = self.nodes[node_id]
        return (node.sort, node.name, node.id)

    def _link(self) -> None:
        for node in self.nodes.values():
            node.children = []
        for node in self.nodes.values():
            if node.parent_id is None or node.parent_id not in self.nodes:
                self.roots.append(node.id)
            else:
                self.nodes[node.parent_id].children.append(node.id)
        for node in self.nodes.values():
            node.children.sort(key=self._sibling_key)
        self.roots.sort(key=self._sibling_key)

        reachable = set()
        stack = list(self.roots)
        while stack:
            node_id = stack.pop()
            reachable.add(node_id)
            stack.extend(self.nodes[node_id].children)
        self.detached = sorted(set(self.nodes) - reachable)

    def __contains__(self, node_id: int) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def parent(self, node_id: int) -> Optional[int]:
        parent_id = self.nodes[node_id].parent_id
        return parent_id if parent_id in self.nodes else None

    def is_root(self, node_id: int) -> bool:
        return self.parent(node_id) is None

    def children(self, node_id: int) -> List[int]:
        return list(self.nodes[node_id].children)

    def ancestors(self, node_id: int) -> List[int]:
        """Root-to-parent order."""
        chain: List[int] = []
        seen = {node_id}
        current = self.parent(node_id)
        while current is not None and current not in seen:
            chain.append(current)
            seen.add(current)
            current = self.parent(current)
        chain.reverse()
        return chain

    def descendants(self, node_id: int) -> List[int]:
        """Pre-order, siblings by sort then name."""
        result: List[int] = []
        stack = list(reversed(self.nodes[node_id].children))
        seen = {node_id}
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            result.append(current)
            stack.extend(reversed(self.nodes[current].children))
        return result

    def descendants_and_self(self, node_id: int) -> List[int]:
        return [node_id] + self.descendants(node_id)

    def ensure_can_move(self, node_id: int, new_parent_id: Optional[int]) -> None:
        """Reject a re-parent that would put a node under itself."""
        if new_parent_id is None:
            return
        if new_parent_id not in self.nodes:
            raise CategoryNotFound(
                f"Parent category {new_parent_id} not found",
                details={"category_id": node_id, "parent_id": new_parent_id},
            )
        if new_parent_id == node_id or new_parent_id in self.descendants(node_id):
            raise StructuralViolation(
                "A category can not be moved under itself or one of its descendants",
                details={"category_id": node_id, "parent_id": new_parent_id},
            )

    def move(self, node_id: int, new_parent_id: Optional[int]) -> None:
        self.ensure_can_move(node_id, new_parent_id)
        self.nodes[node_id].parent_id = new_parent_id
        self.roots = []
        self._link()

    def compute_bounds(self) -> Dict[int, Bounds]:
        """Nested-set bounds for every node, detached nodes placed as roots."""
        bounds: Dict[int, Bounds] = {}
        counter = 0
        for root in self.roots + self.detached:
            if root in bounds:
                continue
            # Iterative DFS: (node, depth, entered)
            stack: List[Tuple[int, int, bool]] = [(root, 0, False)]
            lefts: Dict[int, int] = {}
            while stack:
                node_id, depth, entered = stack.pop()
                if entered:
                    counter += 1
                    bounds[node_id] = Bounds(lefts[node_id], counter, depth)
                    continue
                if node_id in lefts or node_id in bounds:
                    continue
                counter += 1
                lefts[node_id] = counter
                stack.append((node_id, depth, True))
                for child in reversed(self.nodes[node_id].children):
                    if child not in lefts and child not in bounds:
                        stack.append((child, depth + 1, False))
        return bounds

    def flat_tree(self) -> List[Tuple[int, int]]:
        """(id, depth) pairs in display order."""
        bounds = self.compute_bounds()
        ordered = sorted(bounds.items(), key=lambda item: item[1].lft)
        return [(node_id, b.depth) for node_id, b in ordered]

    def path(self, node_id: int, separator: str = "/") -> str:
        chain = self.ancestors(node_id) + [node_id]
        return separator.join(self.nodes[i].slug for i in chain)
