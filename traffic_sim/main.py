import logging
from typing import Any, Dict
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from traffic_sim.application.commands import (
    ApplyConfigCommand, PauseCommand, ResetCommand, ResumeCommand, StartCommand, StopCommand
)
from traffic_sim.domain.config import DEFAULT_CONFIG, SimulationConfig, merge_config, validate_config
from traffic_sim.domain.models import DebugInfo, Statistics
from traffic_sim.domain.state import SimulationResults, SimulationSnapshot
from traffic_sim.kernel.simulation_kernel import SimulationKernel
from traffic_sim.settings import configure_logging, settings

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# The engine never steps on its own; callers decide when time advances.
kernel = SimulationKernel(DEFAULT_CONFIG.model_copy(update={"random_seed": settings.DEFAULT_SEED}))

app = FastAPI(title="Intersection Traffic Simulation")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def _control(command) -> Dict[str, Any]:
    kernel.queue_command(command)
    # Requests are served between ticks, so draining here is still a step boundary.
    kernel.process_commands()
    return {"state": kernel.run_state, "time": kernel.time}

@app.get("/api/simulation/state", response_model=SimulationSnapshot)
async def get_simulation_state():
    """Returns the current frame: vehicles, lights, geometry and counters"""
    return kernel.get_snapshot()

@app.get("/api/simulation/progress")
async def get_progress():
    return {"progress": kernel.progress(), "time": kernel.time, "state": kernel.run_state}

@app.get("/api/simulation/results", response_model=SimulationResults)
async def get_results():
    """Returns the full results object (statistics, records, time series, events)"""
    return kernel.get_results()

@app.get("/api/simulation/statistics", response_model=Statistics)
async def get_current_statistics():
    return kernel.get_current_statistics()

@app.get("/api/simulation/debug", response_model=DebugInfo)
async def get_debug_info():
    return kernel.get_debug_info()

@app.get("/api/simulation/config", response_model=SimulationConfig)
async def get_config():
    return kernel.config

@app.put("/api/simulation/config", response_model=SimulationConfig)
async def update_config(payload: Dict[str, Any]):
    """Merges a partial config over the current one; applying it resets the run"""
    try:
        new_config = merge_config(payload, kernel.config)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail={"errors": [err["msg"] for err in e.errors()]})

    errors = validate_config(new_config)
    if errors:
        logger.info("Rejected configuration update: %s", "; ".join(errors))
        raise HTTPException(status_code=422, detail={"errors": errors})

    _control(ApplyConfigCommand(new_config))
    return kernel.config

@app.post("/api/simulation/start")
async def start_simulation():
    return _control(StartCommand())

@app.post("/api/simulation/pause")
async def pause_simulation():
    return _control(PauseCommand())

@app.post("/api/simulation/resume")
async def resume_simulation():
    return _control(ResumeCommand())

@app.post("/api/simulation/stop")
async def stop_simulation():
    return _control(StopCommand())

@app.post("/api/simulation/reset")
async def reset_simulation():
    return _control(ResetCommand())

# Stepping runs on the event loop, which serialises every request against the one kernel.
# Other requests wait until a step batch or /run finishes; MAX_STEPS_PER_REQUEST bounds the wait.
@app.post("/api/simulation/step", response_model=SimulationSnapshot)
async def step_simulation(count: int = Query(1, ge=1)):
    """Advances the engine by ``count`` logical steps (or until it completes)"""
    if count > settings.MAX_STEPS_PER_REQUEST:
        raise HTTPException(
            status_code=400, detail=f"count must not exceed {settings.MAX_STEPS_PER_REQUEST}"
        )
    for _ in range(count):
        if not kernel.run_tick():
            break
    return kernel.get_snapshot()

@app.post("/api/simulation/run", response_model=SimulationResults)
async def run_simulation():
    """Runs the remainder of the simulation and returns its results"""
    return kernel.run_until_complete()

@app.get("/")
def read_root():
    return {"status": "Intersection Simulation Engine Running (Deterministic Kernel)"}
