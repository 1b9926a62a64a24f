"""Step registry: step id -> ordered node ids produced by that step."""

from canvas_flow.engine.errors import MissingReference


class StepRegistry:
    """Ordered per-step mapping, local to one plan execution."""

    def __init__(self) -> None:
        self._entries: dict[str, list[str]] = {}

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, step_id: str, node_ids: list[str]) -> None:
        """Replace the entry for a step with the given ids."""
        self._entries[step_id] = list(node_ids)

    def get(self, step_id: str | None) -> list[str] | None:
        if step_id is None or step_id not in self._entries:
            return None
        return list(self._entries[step_id])

    def require(self, step_id: str) -> list[str]:
        ids = self.get(step_id)
        if ids is None:
            raise MissingReference(step_id, f"step:{step_id}")
        return ids

    def resolve(self, step_id: str | None, index: int | None = None) -> str | None:
        """Node id at ``index`` of a step's entry (negative indices count from the end)."""
        ids = self.get(step_id)
        if not ids:
            return None
        idx = 0 if index is None else index
        if -len(ids) <= idx < len(ids):
            return ids[idx]
        return None

    def snapshot(self) -> dict[str, list[str]]:
        return {step_id: list(ids) for step_id, ids in self._entries.items()}
