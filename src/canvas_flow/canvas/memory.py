"""
In-memory canvas state.

Holds one node collection per category, the connection list, the current
selection and the viewport. Persistence calls are recorded so hosts and tests
can observe what would have been written durably; optional async hooks let a
host forward them elsewhere.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from canvas_flow.canvas.types import ALL_CATEGORIES, Connection, NodeRecord, Viewport

logger = logging.getLogger(__name__)

NodeHook = Callable[[str, NodeRecord], Awaitable[None]]
DeleteHook = Callable[[str, str], Awaitable[None]]
ConnectorHook = Callable[[Connection], Awaitable[None]]


class InMemoryCanvasState:
    """Canvas-state collaborator backed by plain Python lists."""

    def __init__(
        self,
        viewport: Viewport | None = None,
        selected_ids: Iterable[str] | None = None,
        on_persist_create: NodeHook | None = None,
        on_persist_delete: DeleteHook | None = None,
        on_persist_connector: ConnectorHook | None = None,
    ):
        self._viewport = viewport or Viewport(width=1200, height=800)
        self._selected_ids: list[str] = list(selected_ids or [])
        self._nodes: dict[str, list[NodeRecord]] = {category: [] for category in ALL_CATEGORIES}
        self._connections: list[Connection] = []

        self._on_persist_create = on_persist_create
        self._on_persist_delete = on_persist_delete
        self._on_persist_connector = on_persist_connector

        # (category, node_id) / connection id, in call order
        self.persisted_creates: list[tuple[str, str]] = []
        self.persisted_deletes: list[tuple[str, str]] = []
        self.persisted_connectors: list[str] = []

    @property
    def viewport(self) -> Viewport:
        return self._viewport

    @viewport.setter
    def viewport(self, value: Viewport) -> None:
        self._viewport = value

    @property
    def selected_ids(self) -> list[str]:
        return list(self._selected_ids)

    def select(self, node_ids: Iterable[str]) -> None:
        self._selected_ids = list(node_ids)

    def clear_selection(self) -> None:
        self._selected_ids = []

    # ------------------------------------------------------------------
    # Nodes
    # ------------------------------------------------------------------

    def _collection(self, category: str) -> list[NodeRecord]:
        if category not in self._nodes:
            self._nodes[category] = []
        return self._nodes[category]

    def list_nodes(self, category: str) -> list[NodeRecord]:
        return list(self._nodes.get(category, []))

    def all_nodes(self) -> list[NodeRecord]:
        return [node for nodes in self._nodes.values() for node in nodes]

    def find_node(self, node_id: str) -> NodeRecord | None:
        for nodes in self._nodes.values():
            for node in nodes:
                if node.id == node_id:
                    return node
        return None

    def add_node(self, category: str, record: NodeRecord) -> None:
        self._collection(category).append(record)

    def remove_nodes(self, category: str, predicate: Callable[[str], bool]) -> list[str]:
        nodes = self._nodes.get(category, [])
        removed = [node.id for node in nodes if predicate(node.id)]
        if removed:
            self._nodes[category] = [node for node in nodes if not predicate(node.id)]
        return removed

    def update_node(self, category: str, node_id: str, fields: dict[str, Any]) -> None:
        for node in self._nodes.get(category, []):
            if node.id == node_id:
                node.fields.update(fields)
                return
        logger.warning(f"[Canvas] update for unknown node {category}/{node_id} ignored")

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def list_connections(self) -> list[Connection]:
        return list(self._connections)

    def add_connection(self, connection: Connection) -> None:
        self._connections.append(connection)

    # ------------------------------------------------------------------
    # Durable persistence
    # ------------------------------------------------------------------

    async def persist_node_create(self, category: str, record: NodeRecord) -> None:
        self.persisted_creates.append((category, record.id))
        if self._on_persist_create:
            await self._on_persist_create(category, record)

    async def persist_node_delete(self, category: str, node_id: str) -> None:
        self.persisted_deletes.append((category, node_id))
        if self._on_persist_delete:
            await self._on_persist_delete(category, node_id)

    async def persist_connector_create(self, connection: Connection) -> None:
        self.persisted_connectors.append(connection.id)
        if self._on_persist_connector:
            await self._on_persist_connector(connection)
