"""
OPMAZE - Main Entry Point
=========================
Generate -> Crop -> Place -> (Solve)

Usage:
    # Default 7x7 maze
    opmaze

    # Sparser maze with a fixed seed
    opmaze --rows 8 --cols 8 --sparsity 0.4 --seed 42

    # Only start and goals need to stay connected, crop to the top-left 5x5
    opmaze --not-fully-connected --crop 0 0 4 4

    # Load settings from JSON and solve a random goal picture
    opmaze --config settings.json --solve
"""

import argparse
import logging
import random
import sys
from typing import List, Optional

from opmaze.core.config import MazeConfig
from opmaze.core.definitions import MazeError
from opmaze.core.state import MazeState
from opmaze.pipeline.maze_engine import MazeEngine
from opmaze.simulation.activation_solver import next_activation_targets
from opmaze.simulation.picture import default_picture, synthesize_goal_picture

logger = logging.getLogger(__name__)


def render_maze(state: MazeState) -> str:
    """ASCII grid plus a legend line."""
    lines = [state.render()]
    lines.append(
        f"start={state.start} goals={state.goals} edges={state.edge_count()}"
    )
    for key, spec in state.node_details.operation.items():
        lines.append(f"  {key} ({spec.color}, x{spec.quantity}): {spec.positions}")
    return "\n".join(lines)


def build_config(args: argparse.Namespace) -> MazeConfig:
    config = MazeConfig.from_json(args.config) if args.config else MazeConfig()
    if args.rows is not None:
        config.rows = args.rows
    if args.cols is not None:
        config.cols = args.cols
    if args.sparsity is not None:
        config.sparsity = args.sparsity
    if args.seed is not None:
        config.seed = int(args.seed) if args.seed.lstrip("-").isdigit() else args.seed
    if args.not_fully_connected:
        config.fully_connected = False
    if args.crop is not None:
        config.crop = tuple(args.crop)
    return config


def run_solver(engine: MazeEngine, puzzle_seed: Optional[int]) -> None:
    state = engine.state
    current = default_picture()
    goal, order = synthesize_goal_picture(current, state.node_details, random.Random(puzzle_seed))
    result = engine.solve_activation_order(current, goal)
    targets = next_activation_targets(result, state.goals)

    print("\n" + "=" * 60)
    print("ACTIVATION PUZZLE")
    print("=" * 60)
    print(f"  Current: {current.describe()}")
    print(f"  Goal:    {goal.describe()}")
    print(f"  Drawn order: {order}")
    print(f"  Orderings checked: {result.orderings_checked}")
    print(f"  Valid orders: {result.valid_orders}")
    print(f"  Next targets: {targets}")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description='OPMAZE - Generate operation-node mazes and solve activation puzzles'
    )
    parser.add_argument('--rows', type=int, help='Grid rows (default: 7)')
    parser.add_argument('--cols', type=int, help='Grid columns (default: 7)')
    parser.add_argument(
        '--sparsity', '-s', type=float,
        help='Edge removal probability in [0, 1] (default: 0.2)'
    )
    parser.add_argument('--seed', type=str, help='Generation seed (default: "Maze")')
    parser.add_argument(
        '--not-fully-connected', action='store_true',
        help='Only keep start and goals connected'
    )
    parser.add_argument(
        '--crop', type=int, nargs=4, metavar=('X1', 'Y1', 'X2', 'Y2'),
        help='Crop rectangle, x = column, y = row, inclusive'
    )
    parser.add_argument('--config', '-c', type=str, help='JSON config file')
    parser.add_argument(
        '--solve', action='store_true',
        help='Draw a goal picture and print the activation targets'
    )
    parser.add_argument('--puzzle-seed', type=int, help='Seed for the goal picture draw')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        engine = MazeEngine(build_config(args))
        state = engine.build()
    except MazeError as e:
        logger.error(f"Maze build failed: {e}")
        return 1

    print("=" * 60)
    print(f"MAZE {state.rows}x{state.cols}")
    print("=" * 60)
    print(render_maze(state))

    if args.solve:
        try:
            run_solver(engine, args.puzzle_seed)
        except MazeError as e:
            logger.error(f"Solver failed: {e}")
            return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
