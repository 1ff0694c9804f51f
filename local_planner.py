"""
Local planner entry point.
Wires cost evaluation, candidate selection and path tracking from config.
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np
import yaml

from control.path_tracking import PathTrackingController, TrackingCommand
from control.pid_controller import PIDController
from planning.candidate import TrajectoryCandidate
from planning.centerline import Centerline
from planning.cost_evaluator import CostEvaluator, CostEvaluatorConfig, CostWeights
from planning.curve import Polynomial
from planning.occupancy_grid import OccupancyGrid
from planning.selector import SelectionResult, select_trajectory

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "local_planner_config.yaml"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: int, log_file: Optional[str] = None) -> logging.Logger:
    """Send log records to the console and, optionally, a file."""
    formatter = logging.Formatter(LOG_FORMAT)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers: List[logging.Handler] = [console_handler]

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_path), mode='a')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
    if log_file is not None:
        logger.info(f"Logging to console and file: {log_file}")
    return logger


def load_config(config_path: Optional[str] = None) -> dict:
    """Load configuration from YAML file or use defaults."""
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    else:
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return {}


def build_cost_evaluator(config: dict) -> CostEvaluator:
    """Build a CostEvaluator from the `planning` config section."""
    planning_cfg = config.get('planning', {}) or {}
    weights_cfg = planning_cfg.get('cost_weights', {}) or {}
    evaluator_cfg = planning_cfg.get('evaluator', {}) or {}
    defaults_w = CostWeights()
    defaults_e = CostEvaluatorConfig()

    weights = CostWeights(
        comfort=float(weights_cfg.get('comfort', defaults_w.comfort)),
        static_safety=float(weights_cfg.get('static_safety', defaults_w.static_safety)),
        dynamic_safety=float(weights_cfg.get('dynamic_safety', defaults_w.dynamic_safety)),
        rho=float(weights_cfg.get('rho', defaults_w.rho)),
        segmentation=float(weights_cfg.get('segmentation', defaults_w.segmentation)),
    )
    evaluator_config = CostEvaluatorConfig(
        sample_step=float(evaluator_cfg.get('sample_step', defaults_e.sample_step)),
        corridor_half_width=float(evaluator_cfg.get('corridor_half_width', defaults_e.corridor_half_width)),
        vehicle_half_width=float(evaluator_cfg.get('vehicle_half_width', defaults_e.vehicle_half_width)),
        safety_distance=float(evaluator_cfg.get('safety_distance', defaults_e.safety_distance)),
    )
    if evaluator_config.sample_step <= 0.0:
        raise ValueError(f"planning.evaluator.sample_step must be positive, got {evaluator_config.sample_step}")
    return CostEvaluator(weights, evaluator_config)


def build_pid_controller(config: dict) -> PIDController:
    """Build the lateral PID controller from `control.path_tracking`."""
    tracking_cfg = (config.get('control', {}) or {}).get('path_tracking', {}) or {}
    return PIDController(
        kp=float(tracking_cfg.get('kp', 0.3)),
        ki=float(tracking_cfg.get('ki', 0.0)),
        kd=float(tracking_cfg.get('kd', 0.05)),
        overshoot_limiter=bool(tracking_cfg.get('overshoot_limiter', True)),
    )


def build_path_tracking_controller(config: dict) -> PathTrackingController:
    tracking_cfg = (config.get('control', {}) or {}).get('path_tracking', {}) or {}
    max_command = tracking_cfg.get('max_command')
    return PathTrackingController(
        pid=build_pid_controller(config),
        max_command=float(max_command) if max_command is not None else None,
    )


class LocalPlanner:
    """
    One planning/control loop: evaluate -> rank -> track.

    Candidates come from an external generator each cycle and are discarded
    when the next set arrives.
    """

    def __init__(self, config: Optional[dict] = None):
        self.config = config if config is not None else {}
        self.evaluator = build_cost_evaluator(self.config)
        self.tracker = build_path_tracking_controller(self.config)
        self.last_selection: Optional[SelectionResult] = None

    def plan(self, candidates: Sequence[TrajectoryCandidate],
             centerline: Optional[Centerline] = None,
             grid: Optional[OccupancyGrid] = None,
             segmentation: Optional[OccupancyGrid] = None) -> SelectionResult:
        """Evaluate and rank a candidate set, then hand the result to the tracker."""
        self.evaluator.evaluate(candidates, centerline=centerline, grid=grid, segmentation=segmentation)
        selection = select_trajectory(candidates)
        self.tracker.set_reference(selection)
        self.last_selection = selection
        return selection

    def control(self, s: float, lateral_offset: float, dt: float) -> TrackingCommand:
        return self.tracker.update(s, lateral_offset, dt)


@dataclass
class Scenario:
    """Everything one CLI run plans over."""
    centerline: Centerline
    candidates: List[TrajectoryCandidate]
    grid: Optional[OccupancyGrid] = None
    segmentation: Optional[OccupancyGrid] = None
    waypoints: list = field(default_factory=list)


def _load_segmentation(seg_cfg: dict) -> OccupancyGrid:
    """
    Terrain cost grid from a scenario block.

    Either `data` (rows of 0..100 cell costs) or `shape` with an optional
    `fill` value and `regions`, each a world `box` [x_min, y_min, x_max, y_max]
    with a `value`.
    """
    resolution = float(seg_cfg.get('resolution', 1.0))
    origin = tuple(seg_cfg.get('origin', (0.0, 0.0)))
    if 'data' in seg_cfg:
        return OccupancyGrid(np.asarray(seg_cfg['data'], dtype=float), resolution=resolution, origin=origin)

    shape = tuple(int(n) for n in seg_cfg['shape'])
    cost_map = OccupancyGrid(np.full(shape, float(seg_cfg.get('fill', 0.0))),
                             resolution=resolution, origin=origin)
    for region in seg_cfg.get('regions', []) or []:
        x_min, y_min, x_max, y_max = (float(v) for v in region['box'])
        cost_map.fill_box(x_min, y_min, x_max, y_max, float(region.get('value', 100.0)))
    return cost_map


def load_scenario(scenario_path: str) -> Scenario:
    """Load a scenario YAML (centerline, candidates, optional grid/segmentation/waypoints)."""
    with open(scenario_path, 'r') as f:
        scenario = yaml.safe_load(f) or {}

    if 'centerline' not in scenario:
        raise ValueError(f"Scenario {scenario_path} has no 'centerline'")
    centerline = Centerline(scenario['centerline'])

    grid = None
    grid_cfg = scenario.get('grid')
    if grid_cfg:
        grid = OccupancyGrid.from_points(
            grid_cfg.get('obstacles', []),
            resolution=float(grid_cfg.get('resolution', 0.5)),
            origin=tuple(grid_cfg.get('origin', (0.0, 0.0))),
            shape=tuple(int(n) for n in grid_cfg['shape']),
        )

    segmentation = None
    seg_cfg = scenario.get('segmentation')
    if seg_cfg:
        if 'data' not in seg_cfg and 'shape' not in seg_cfg:
            raise ValueError(f"Scenario {scenario_path} segmentation needs 'data' or 'shape'")
        segmentation = _load_segmentation(seg_cfg)

    candidates = []
    for entry in scenario.get('candidates', []) or []:
        candidate = TrajectoryCandidate(Polynomial(entry['coefficients']))
        candidate.max_length = float(entry.get('max_length', candidate.max_length))
        candidate.s0 = float(entry.get('s0', candidate.s0))
        candidates.append(candidate)
    if not candidates:
        raise ValueError(f"Scenario {scenario_path} has no candidates")

    return Scenario(centerline=centerline, candidates=candidates, grid=grid,
                    segmentation=segmentation, waypoints=scenario.get('waypoints', []) or [])


def format_ranking(selection: SelectionResult) -> str:
    lines = [f"{'rank':>4}  {'cost':>9}  {'s0':>6}  {'max_k':>8}  feasible"]
    for c in selection.ranked:
        lines.append(f"{c.rank:>4}  {c.cost:>9.4f}  {c.s0:>6.2f}  {c.max_curvature:>8.4f}  "
                     f"{'yes' if c.is_feasible else 'no'}")
    if not selection.has_trajectory:
        lines.append("NO FEASIBLE TRAJECTORY")
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description='Rank candidate trajectories for a scenario')
    parser.add_argument('--config', type=str, default=None,
                        help='Path to configuration YAML file (default: config/local_planner_config.yaml)')
    parser.add_argument('--scenario', type=str, required=True,
                        help='Scenario YAML with centerline, candidates and optional grid/segmentation')
    parser.add_argument('--plot', type=str, default=None,
                        help='Save a debug plot to this image file')
    parser.add_argument('--log-level', type=str, default='WARNING',
                        help='Logging level (DEBUG, INFO, WARNING, ERROR)')
    parser.add_argument('--log-file', type=str, default=None)
    args = parser.parse_args(argv)

    configure_logging(getattr(logging, args.log_level.upper(), logging.WARNING), args.log_file)

    config = load_config(args.config)
    scenario = load_scenario(args.scenario)

    planner = LocalPlanner(config)
    selection = planner.plan(scenario.candidates, centerline=scenario.centerline,
                             grid=scenario.grid, segmentation=scenario.segmentation)
    print(format_ranking(selection))

    if args.plot:
        from visualization.plotter import Plotter

        vis_cfg = config.get('visualization', {}) or {}
        plotter = Plotter(nx=int(vis_cfg.get('nx', 800)), ny=int(vis_cfg.get('ny', 800)))
        plotter.set_path(scenario.centerline.points)
        if scenario.waypoints:
            plotter.add_waypoints(scenario.waypoints)
        if scenario.grid is not None:
            plotter.add_map(scenario.grid)
        plotter.add_curves(scenario.candidates)
        plotter.display(save=True, ofname=args.plot)

    return 0 if selection.has_trajectory else 1


if __name__ == '__main__':
    sys.exit(main())
