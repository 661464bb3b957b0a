# Define data structures. Token is the unit of execution state: position, path, data bag and status.
# RunState holds everything about the current run and is replaced, never mutated, on every change.
import copy
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple


class TokenStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class Token:
    id: str
    current_node_id: str
    path: Tuple[str, ...] = ()
    data: Dict[str, Any] = field(default_factory=dict)
    status: TokenStatus = TokenStatus.ACTIVE
    last_edge_id: Optional[str] = None  # edge traversed by the most recent move
    last_step: int = 0  # step that last touched this token

    @property
    def is_active(self) -> bool:
        return self.status == TokenStatus.ACTIVE

    def advance(self, node_id: str, edge_id: str, step: int) -> "Token":
        return replace(
            self,
            current_node_id=node_id,
            path=self.path + (node_id,),
            last_edge_id=edge_id,
            last_step=step,
        )

    def fork(self, token_id: str, node_id: str, edge_id: str, step: int) -> "Token":
        # Children never share the parent's data bag
        return Token(
            id=token_id,
            current_node_id=node_id,
            path=self.path + (node_id,),
            data=copy.deepcopy(self.data),
            status=TokenStatus.ACTIVE,
            last_edge_id=edge_id,
            last_step=step,
        )

    def complete(self, step: int) -> "Token":
        return replace(self, status=TokenStatus.COMPLETED, last_edge_id=self._edge_in(step), last_step=step)

    def terminate(self, step: int) -> "Token":
        return replace(self, status=TokenStatus.TERMINATED, last_edge_id=self._edge_in(step), last_step=step)

    def _edge_in(self, step: int) -> Optional[str]:
        # Only an edge traversed during this same step stays highlighted
        return self.last_edge_id if self.last_step == step else None


def _unique(values: Iterable[str]) -> Tuple[str, ...]:
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return tuple(seen)


def project_active_sets(tokens: Iterable[Token], step: int) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """
    Derives the active node and edge ids from the tokens touched in the given step.

    Terminated tokens are left out since their node no longer resolves.
    """
    touched = [t for t in tokens if t.last_step == step and t.status != TokenStatus.TERMINATED]
    node_ids = _unique(t.current_node_id for t in touched)
    edge_ids = _unique(t.last_edge_id for t in touched if t.last_edge_id is not None)
    return node_ids, edge_ids


@dataclass(frozen=True)
class RunState:
    is_running: bool = False
    is_paused: bool = False
    speed_ms: float = 1000
    use_random_paths: bool = False
    tokens: Tuple[Token, ...] = ()
    active_node_ids: Tuple[str, ...] = ()
    active_edge_ids: Tuple[str, ...] = ()
    step_count: int = 0
    token_counter: int = 0

    @property
    def active_tokens(self) -> List[Token]:
        return [t for t in self.tokens if t.status == TokenStatus.ACTIVE]

    @property
    def completed_tokens(self) -> List[Token]:
        return [t for t in self.tokens if t.status == TokenStatus.COMPLETED]

    @property
    def terminated_tokens(self) -> List[Token]:
        return [t for t in self.tokens if t.status == TokenStatus.TERMINATED]

    @property
    def has_active_tokens(self) -> bool:
        return any(t.is_active for t in self.tokens)

    @property
    def is_finished(self) -> bool:
        return self.is_running and not self.has_active_tokens

    def cleared(self) -> "RunState":
        """Drops the run but keeps speed and gateway policy."""
        return RunState(speed_ms=self.speed_ms, use_random_paths=self.use_random_paths)
