# Controls a simulation run: start, pause, stop, reset, manual stepping and timed stepping.
import logging
import random
import threading
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from flow_simulation.graph_view import ProcessGraph
from flow_simulation.models import RunState, Token
from flow_simulation.simulation import NoStartEventError, seed_state, step as step_state
from flow_simulation.timing import TimingDriver

__all__ = ["SimulationController", "NoStartEventError"]


class SimulationController:
    """
    Owns the run state for one process graph.

    Timed steps run on the TimingDriver's timer thread, so every state change
    happens under one re-entrant lock and replaces the whole RunState.
    """

    def __init__(self, graph: ProcessGraph, speed_ms: float = 1000, use_random_paths: bool = False,
                 rng: Optional[random.Random] = None, seed: Optional[int] = None,
                 driver: Optional[TimingDriver] = None):
        self.graph = graph
        self.rng = rng if rng is not None else random.Random(seed)
        self.driver = driver if driver is not None else TimingDriver()
        self._lock = threading.RLock()
        self._listeners: List[Callable[[RunState], None]] = []
        # Bumped whenever pending timed steps must be dropped
        self._step_generation = 0
        _check_speed(speed_ms)
        self._state = RunState(speed_ms=speed_ms, use_random_paths=use_random_paths)

    # ---------- Read-only view ----------
    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state.is_running

    @property
    def is_paused(self) -> bool:
        return self._state.is_paused

    @property
    def tokens(self) -> Tuple[Token, ...]:
        return self._state.tokens

    @property
    def active_node_ids(self) -> List[str]:
        return list(self._state.active_node_ids)

    @property
    def active_edge_ids(self) -> List[str]:
        return list(self._state.active_edge_ids)

    @property
    def speed_ms(self) -> float:
        return self._state.speed_ms

    @property
    def use_random_paths(self) -> bool:
        return self._state.use_random_paths

    # ---------- Observers ----------
    def subscribe(self, callback: Callable[[RunState], None]):
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[RunState], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _publish(self, state: RunState):
        self._state = state
        for callback in list(self._listeners):
            try:
                callback(state)
            except Exception:
                logging.exception(f"Simulation listener {callback!r} failed.")

    # ---------- Run control ----------
    def start(self) -> RunState:
        with self._lock:
            if self._state.is_running:
                if self._state.is_paused:
                    logging.info("Resuming simulation.")
                    self._publish(replace(self._state, is_paused=False))
                    self._schedule_next()
                else:
                    logging.info("Simulation already running.")
                return self._state

            # Raises NoStartEventError before touching the state
            state = seed_state(self._state, self.graph)
            logging.info(f"Simulation started at '{state.tokens[0].current_node_id}'.")
            self._publish(state)
            self._schedule_next()
            return self._state

    def pause(self) -> RunState:
        with self._lock:
            if not self._state.is_running or self._state.is_paused:
                return self._state
            self._cancel_timed_step()
            logging.info(f"Simulation paused at step {self._state.step_count}.")
            self._publish(replace(self._state, is_paused=True))
            return self._state

    def stop(self) -> RunState:
        with self._lock:
            self._cancel_timed_step()
            logging.info("Simulation stopped.")
            self._publish(self._state.cleared())
            return self._state

    def reset(self) -> RunState:
        # Same effect as stop(); speed and policy survive both
        with self._lock:
            self._cancel_timed_step()
            logging.info("Simulation reset.")
            self._publish(self._state.cleared())
            return self._state

    def step(self) -> RunState:
        """Performs one step, also while paused. No-op without a run or without active tokens."""
        with self._lock:
            if not self._state.is_running or not self._state.has_active_tokens:
                return self._state
            self._publish(step_state(self._state, self.graph, self.rng))
            return self._state

    def run_to_completion(self, max_steps: int = 1000) -> RunState:
        """Steps synchronously until no token is active or max_steps is reached."""
        with self._lock:
            if not self._state.is_running:
                self.start()
            self._cancel_timed_step()
            taken = 0
            while self._state.has_active_tokens and taken < max_steps:
                self.step()
                taken += 1
            if self._state.has_active_tokens:
                logging.warning(f"run_to_completion stopped after {max_steps} steps.")
            return self._state

    # ---------- Configuration ----------
    def set_speed(self, speed_ms: float):
        _check_speed(speed_ms)
        with self._lock:
            self._publish(replace(self._state, speed_ms=speed_ms))

    def set_random_policy(self, use_random_paths: bool):
        with self._lock:
            self._publish(replace(self._state, use_random_paths=bool(use_random_paths)))

    # ---------- Timed stepping ----------
    def _schedule_next(self):
        state = self._state
        if state.is_running and not state.is_paused and state.has_active_tokens:
            generation = self._step_generation
            self.driver.schedule(state.speed_ms, lambda: self._on_timer(generation))

    def _cancel_timed_step(self):
        self._step_generation += 1
        self.driver.cancel()

    def _on_timer(self, generation: int):
        with self._lock:
            # A timer that fired before pause()/stop() may only get here afterwards
            if generation != self._step_generation:
                logging.debug(f"Dropping timed step from generation {generation}.")
                return
            if not self._state.is_running or self._state.is_paused:
                return
            if not self._state.has_active_tokens:
                return
            self._publish(step_state(self._state, self.graph, self.rng))
            self._schedule_next()


def _check_speed(speed_ms):
    if isinstance(speed_ms, bool) or not isinstance(speed_ms, (int, float)) or speed_ms <= 0:
        raise ValueError(f"Step interval must be a positive number of milliseconds, got {speed_ms!r}.")
