# Logic that advances tokens through the process graph
import logging
import random
from dataclasses import replace
from typing import List, Optional

from flow_simulation.config import SimulationSettings
from flow_simulation.gateways import resolve_gateway
from flow_simulation.graph_view import ProcessGraph
from flow_simulation.models import RunState, Token, project_active_sets


class NoStartEventError(ValueError):
    """Raised when a run is started on a graph without a start event."""


def seed_state(state: RunState, graph: ProcessGraph) -> RunState:
    """
    Places the first token on the first start event and marks the run as running.

    Only the first start event is seeded, even if the graph has several.
    """
    start_node = graph.first_start_event()
    if start_node is None:
        raise NoStartEventError("No start event found in the process graph.")

    start_count = len(graph.start_events())
    if start_count > 1:
        logging.warning(f"Process has {start_count} start events. Only '{start_node.id}' is seeded.")

    token = Token(id="Token-1", current_node_id=start_node.id, path=(start_node.id,), last_step=0)
    logging.info(f"{token.id} created at start event '{start_node.id}'.")

    return replace(
        state.cleared(),
        is_running=True,
        is_paused=False,
        tokens=(token,),
        active_node_ids=(start_node.id,),
        active_edge_ids=(),
        step_count=0,
        token_counter=1,
    )


def _advance_token(token: Token, graph: ProcessGraph, edge, step_index: int) -> Token:
    moved = token.advance(edge.target, edge.id, step_index)
    logging.info(f"{token.id} moved '{token.current_node_id}' -> '{edge.target}' via '{edge.id}'.")

    target = graph.get_node(edge.target)
    if target is not None and target.is_end_event:
        logging.info(f"{token.id} reached end event '{edge.target}'.")
        return moved.complete(step_index)
    return moved


def step(state: RunState, graph: ProcessGraph, rng: Optional[random.Random] = None) -> RunState:
    """
    Advances every active token by one hop and returns the new run state.

    Parameters:
        state (RunState): The state before the step. It is not modified.
        graph (ProcessGraph): The graph being simulated. It is not modified.
        rng (random.Random): Generator used by gateways under the random policy.

    Returns:
        RunState: The state after the step, with recomputed active node/edge ids.
    """
    if rng is None:
        rng = random.Random()

    if not state.has_active_tokens:
        return state

    step_index = state.step_count + 1
    token_counter = state.token_counter
    tokens: List[Token] = list(state.tokens)
    spawned: List[Token] = []

    for position, token in enumerate(state.tokens):
        if not token.is_active:
            continue

        node = graph.get_node(token.current_node_id)

        # Node vanished from the graph: stop this token, keep the rest of the run going
        if node is None:
            logging.warning(f"{token.id} is on unknown node '{token.current_node_id}'. Terminating token.")
            tokens[position] = token.terminate(step_index)
            continue

        if node.is_end_event:
            tokens[position] = token.complete(step_index)
            continue

        outgoing = graph.outgoing_edges(node.id)

        if node.is_gateway:
            resolution = resolve_gateway(node, outgoing, state.use_random_paths, rng)
            if not resolution.edges:
                logging.warning(f"Gateway '{node.id}' has no outgoing flows. {token.id} completes here.")
                tokens[position] = token.complete(step_index)
                continue

            if resolution.fork:
                # The parent is replaced by one child per chosen flow
                tokens[position] = None
                for edge in resolution.edges:
                    token_counter += 1
                    child = token.fork(f"Token-{token_counter}", edge.target, edge.id, step_index)
                    logging.info(f"{token.id} forked into {child.id} at '{node.id}' towards '{edge.target}'.")
                    target = graph.get_node(edge.target)
                    if target is not None and target.is_end_event:
                        child = child.complete(step_index)
                    spawned.append(child)
                continue

            tokens[position] = _advance_token(token, graph, resolution.edges[0], step_index)
            continue

        # Plain task or event: follow the first flow found
        if not outgoing:
            logging.info(f"{token.id} reached dead end '{node.id}'.")
            tokens[position] = token.complete(step_index)
            continue

        tokens[position] = _advance_token(token, graph, outgoing[0], step_index)

    new_tokens = tuple(t for t in tokens if t is not None) + tuple(spawned)
    active_node_ids, active_edge_ids = project_active_sets(new_tokens, step_index)

    new_state = replace(
        state,
        tokens=new_tokens,
        active_node_ids=active_node_ids,
        active_edge_ids=active_edge_ids,
        step_count=step_index,
        token_counter=token_counter,
    )

    if not new_state.has_active_tokens:
        logging.info(f"Simulation finished after {step_index} steps.")

    return new_state


def run_simulation(graph: ProcessGraph, settings: SimulationSettings = None,
                   rng: Optional[random.Random] = None) -> RunState:
    """
    Runs the simulation headless, without a timer, until no token is active or max_steps is hit.
    """
    if settings is None:
        settings = SimulationSettings()
    if rng is None:
        rng = random.Random(settings.seed)

    state = RunState(speed_ms=settings.speed_ms, use_random_paths=settings.use_random_paths)
    state = seed_state(state, graph)

    while state.has_active_tokens and state.step_count < settings.max_steps:
        state = step(state, graph, rng)

    if state.has_active_tokens:
        logging.warning(f"Stopped after {settings.max_steps} steps with {len(state.active_tokens)} active tokens.")
    else:
        logging.info(
            f"Simulation complete. Completed: {len(state.completed_tokens)}, terminated: {len(state.terminated_tokens)}."
        )

    return state
