# Main code file for the process execution simulator

import argparse
import json
import logging
import random
import threading

from tabulate import tabulate

from flow_simulation.config import SimulationSettings, load_settings
from flow_simulation.controller import SimulationController
from flow_simulation.graph_view import load_diagram_json
from flow_simulation.reporting import log_simulation_summary, save_simulation_report
from flow_simulation.simulation import run_simulation
from flow_simulation.validator import log_validation_issues, validate_process

# Configure logging
logging.basicConfig(
    filename='simulation_log.txt',
    filemode='w',  # Overwrite the log file
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Simulate token flow through a process diagram.")
    parser.add_argument("diagram", help="Diagram JSON exported by the editor")
    parser.add_argument("--parameters", help="Parameter sheet (.xlsx or .csv) with name/value rows")
    parser.add_argument("--speed", type=float, help="Step interval in milliseconds")
    parser.add_argument("--random-paths", action="store_true", default=None, help="Random gateway branch selection")
    parser.add_argument("--seed", type=int, help="Seed for random branch selection")
    parser.add_argument("--max-steps", type=int, help="Upper bound on the number of steps")
    parser.add_argument("--live", action="store_true", help="Step on a timer and print the active elements")
    parser.add_argument("--report", help="Write an Excel report to this path")
    parser.add_argument("--graph-json", help="Write the parsed process graph as node-link JSON")
    return parser.parse_args(argv)


def build_settings(args) -> SimulationSettings:
    settings = load_settings(args.parameters) if args.parameters else SimulationSettings()
    if args.speed is not None:
        settings.speed_ms = args.speed
    if args.random_paths is not None:
        settings.use_random_paths = args.random_paths
    if args.seed is not None:
        settings.seed = args.seed
    if args.max_steps is not None:
        settings.max_steps = args.max_steps
    return settings


def run_live(graph, settings):
    """Runs on the timing driver and prints the active set after each step."""
    finished = threading.Event()
    controller = SimulationController(
        graph,
        speed_ms=settings.speed_ms,
        use_random_paths=settings.use_random_paths,
        seed=settings.seed,
    )

    def on_change(state):
        print(f"Step {state.step_count}: nodes={list(state.active_node_ids)} edges={list(state.active_edge_ids)}")
        if state.is_finished or state.step_count >= settings.max_steps:
            finished.set()

    controller.subscribe(on_change)
    controller.start()
    finished.wait()
    state = controller.state
    controller.pause()
    return state


def main(argv=None):
    args = parse_args(argv)
    settings = build_settings(args)

    # Log the settings as a formatted table
    logging.info("Simulation settings:")
    table = tabulate([vars(settings)], headers='keys', tablefmt='grid')
    logging.info("\n" + table)

    graph = load_diagram_json(args.diagram)
    log_validation_issues(validate_process(graph))

    if args.graph_json:
        with open(args.graph_json, "w") as json_file:
            json.dump(graph.to_node_link_data(), json_file, indent=4)

    if args.live:
        state = run_live(graph, settings)
    else:
        state = run_simulation(graph, settings, random.Random(settings.seed))

    counts = log_simulation_summary(state)
    print(f"Steps: {state.step_count}, tokens: {counts}")

    if args.report:
        save_simulation_report(state, graph, args.report)


if __name__ == "__main__":
    main()
