import json
import logging
import sys
import time
from typing import List, Optional
from traffic_sim.domain.config import DEFAULT_CONFIG, SimulationConfig, import_config
from traffic_sim.domain.models import RunSummary, Severity
from traffic_sim.kernel.simulation_kernel import SimulationKernel
from traffic_sim.settings import configure_logging, settings

logger = logging.getLogger(__name__)

def load_config(config_path: Optional[str]) -> SimulationConfig:
    if not config_path or config_path == "-":
        return DEFAULT_CONFIG
    with open(config_path) as f:
        return import_config(f.read())

def run_headless_experiment(config: SimulationConfig, seed: Optional[int] = None) -> RunSummary:
    kernel = SimulationKernel(config)
    if seed is not None:
        kernel.initialize(seed=seed)

    start_time = time.time()
    results = kernel.run_until_complete()
    logger.info("Run (seed %d) finished in %.4fs", kernel.config.random_seed, time.time() - start_time)

    return RunSummary(
        seed=kernel.config.random_seed,
        statistics=results.statistics,
        collisions=kernel.collision_detector.get_collision_count(Severity.COLLISION),
        near_misses=kernel.collision_detector.get_collision_count(Severity.NEAR_MISS),
        completed_at=results.timestamp,
    )

def run_seed_sweep(config: SimulationConfig, seeds: List[int]) -> List[RunSummary]:
    return [run_headless_experiment(config, seed) for seed in seeds]

def print_summary(summary: RunSummary):
    stats = summary.statistics
    print(f"Seed {summary.seed}:")
    print(f"  vehicles        {stats.total_vehicles}")
    print(f"  throughput      {stats.throughput:.1f} veh/h")
    print(f"  avg travel time {stats.average_travel_time:.2f}s")
    print(f"  avg wait time   {stats.average_wait_time:.2f}s (p90 {stats.wait_time_p90:.2f}s)")
    print(f"  avg queue       {stats.average_queue_length:.2f} (max {stats.max_queue_length})")
    print(f"  collisions      {summary.collisions} ({summary.near_misses} near misses)")

def _parse_seeds(arg: str) -> List[int]:
    return [int(s) for s in arg.split(",") if s.strip()]

def main(argv: Optional[List[str]] = None):
    args = list(sys.argv[1:] if argv is None else argv)
    configure_logging(settings.LOG_LEVEL)

    seeds = None
    for arg in list(args):
        if arg.startswith("--seeds="):
            seeds = _parse_seeds(arg.split("=", 1)[1])
            args.remove(arg)

    if len(args) > 2 or any(a in ("-h", "--help") for a in args):
        print("Usage: traffic-sim-experiment [config.json|-] [output.json] [--seeds=1,2,3]")
        return 1

    config = load_config(args[0] if args else None)
    summaries = run_seed_sweep(config, seeds) if seeds else [run_headless_experiment(config)]

    for summary in summaries:
        print_summary(summary)

    if len(args) > 1:
        with open(args[1], 'w') as f:
            json.dump([s.model_dump(mode="json") for s in summaries], f, indent=2)
        print(f"Wrote {len(summaries)} run(s) to {args[1]}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
