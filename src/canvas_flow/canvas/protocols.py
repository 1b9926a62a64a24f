"""
Collaborator protocols - the interfaces the engine calls into but does not own.

The canvas-state store and the prompt-completion service are injected into
the engine; any object satisfying these protocols can be used.
"""

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

from canvas_flow.canvas.types import Connection, NodeRecord, Viewport


@runtime_checkable
class CanvasStateProtocol(Protocol):
    """Canvas-state collaborator.

    Each node category has an in-memory collection (synchronous setters)
    and a durable store (asynchronous persist calls).
    """

    @property
    def viewport(self) -> Viewport:
        """Current viewport, used to center newly created nodes."""
        ...

    @property
    def selected_ids(self) -> list[str]:
        """Ids of the currently selected nodes."""
        ...

    def clear_selection(self) -> None:
        ...

    def list_nodes(self, category: str) -> list[NodeRecord]:
        """Return the in-memory collection for a category, in insertion order."""
        ...

    def find_node(self, node_id: str) -> NodeRecord | None:
        ...

    def add_node(self, category: str, record: NodeRecord) -> None:
        """Append a node to the in-memory collection for its category."""
        ...

    def remove_nodes(self, category: str, predicate: Callable[[str], bool]) -> list[str]:
        """Filter a category's collection, returning the removed ids in order."""
        ...

    def update_node(self, category: str, node_id: str, fields: dict[str, Any]) -> None:
        """Merge generation results into an existing node."""
        ...

    def list_connections(self) -> list[Connection]:
        ...

    def add_connection(self, connection: Connection) -> None:
        ...

    async def persist_node_create(self, category: str, record: NodeRecord) -> None:
        """Durably save a newly created node."""
        ...

    async def persist_node_delete(self, category: str, node_id: str) -> None:
        """Durably delete a node."""
        ...

    async def persist_connector_create(self, connection: Connection) -> None:
        """Durably save a new connection."""
        ...


@runtime_checkable
class PromptCompletionProtocol(Protocol):
    """Prompt-completion collaborator.

    Implementations may answer with a bare string or with a mapping carrying
    ``response`` or ``enhanced_prompt``.
    """

    async def query_prompt(self, text: str, max_tokens: int) -> str | dict[str, Any]:
        ...


def completion_text(result: Any) -> str:
    """Extract the text of a prompt-completion answer ("" when absent)."""
    if isinstance(result, str):
        return result.strip()
    if isinstance(result, dict):
        text = result.get("response") or result.get("enhanced_prompt") or ""
        return text.strip() if isinstance(text, str) else ""
    return ""
