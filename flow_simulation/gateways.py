# Branching rules applied when a token leaves a gateway
import logging
import random
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from flow_simulation.graph_view import EdgeView, NodeView


@dataclass(frozen=True)
class Resolution:
    edges: Tuple[EdgeView, ...]
    fork: bool = False


def _pick_one(candidates: Sequence[EdgeView], use_random_paths: bool, rng: random.Random) -> EdgeView:
    if use_random_paths:
        return rng.choice(list(candidates))
    return candidates[0]


def choose_exclusive_edge(outgoing: Sequence[EdgeView], use_random_paths: bool, rng: random.Random) -> EdgeView:
    """
    Picks the single flow an exclusive gateway follows.

    Conditional flows win over the default flow, the default flow wins over the rest.
    Conditions are never evaluated.
    """
    conditional = [edge for edge in outgoing if edge.has_condition]
    if conditional:
        return _pick_one(conditional, use_random_paths, rng)

    default = next((edge for edge in outgoing if edge.is_default), None)
    if default is not None:
        return default

    return _pick_one(outgoing, use_random_paths, rng)


def choose_inclusive_edges(outgoing: Sequence[EdgeView], use_random_paths: bool, rng: random.Random) -> List[EdgeView]:
    # Deterministic mode takes every branch so runs stay reproducible
    if not use_random_paths:
        return list(outgoing)

    size = rng.randint(1, len(outgoing))
    chosen = rng.sample(range(len(outgoing)), size)
    return [outgoing[i] for i in sorted(chosen)]


def resolve_gateway(node: NodeView, outgoing: Sequence[EdgeView], use_random_paths: bool = False,
                    rng: random.Random = None) -> Resolution:
    """
    Determine the flow(s) a token takes out of a gateway.

    Parameters:
        node: The gateway the token sits on.
        outgoing: The gateway's outgoing flows in source order.
        use_random_paths: Random branch selection when True, first-match when False.
        rng: Random generator for the random policy.

    Returns:
        Resolution: The flows to traverse this step and whether the token forks.
        An empty resolution means the gateway is a dead end.
    """
    if rng is None:
        rng = random.Random()

    if not outgoing:
        return Resolution(edges=())

    gateway = node.gateway_subtype

    if gateway == "parallel":
        # Every branch, unconditionally
        return Resolution(edges=tuple(outgoing), fork=True)

    elif gateway == "inclusive":
        chosen = choose_inclusive_edges(outgoing, use_random_paths, rng)
        return Resolution(edges=tuple(chosen), fork=len(chosen) > 1)

    elif gateway not in ("exclusive", "event-based", "complex"):
        logging.warning(f"Gateway '{node.id}' has unknown type '{gateway}'. Resolving it as exclusive.")

    # Exclusive, event-based and complex gateways share first-match semantics
    return Resolution(edges=(choose_exclusive_edge(outgoing, use_random_paths, rng),))
