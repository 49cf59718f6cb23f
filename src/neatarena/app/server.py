from __future__ import annotations

import asyncio
import json
from dataclasses import asdict
from typing import Any, Dict, Optional, Set

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from loguru import logger

from ..config import SimulationConfig
from ..exceptions import TrainingInProgressError
from ..neat.population import LiveSession, Population
from ..sim.types.metrics import GenerationMetrics


class TrainingController:
    """Drives the generational loop for a web front end.

    Generations run in a worker thread, one at a time. Stopping only prevents
    the next generation from starting; the current one always finishes.
    """

    def __init__(self, config: SimulationConfig):
        self.config = config
        self.population = Population(config)
        self.running = False
        self.live: Optional[LiveSession] = None
        self.clients: Set[WebSocket] = set()
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        if self.live is not None:
            raise TrainingInProgressError("Stop the live session before training")
        self.running = True
        if self._task is None:
            self._task = asyncio.create_task(self._loop())
            logger.info("[TrainingController] Training started")

    async def stop(self) -> None:
        self.running = False

    async def wait_idle(self) -> None:
        if self._task is not None:
            await self._task

    async def _loop(self) -> None:
        try:
            while self.running:
                await self.step_generation()
        finally:
            self._task = None
            logger.info(f"[TrainingController] Training stopped at generation {self.population.generation}")

    async def step_generation(self) -> GenerationMetrics:
        async with self._lock:
            metrics = await asyncio.to_thread(self.population.run_generation)
        await self._broadcast({"type": "generation", "payload": asdict(metrics)})
        return metrics

    def status(self) -> Dict[str, Any]:
        population = self.population
        return {
            "running": self.running,
            "generation": population.generation,
            "species": len(population.species),
            "average_fitness": population.average_fitness,
            "progress": population.progress,
            "live": self.live is not None,
        }

    async def start_live(self, agent_id: Optional[int] = None) -> Dict[str, Any]:
        if self.running or self._task is not None:
            raise TrainingInProgressError("Cannot open a live session while training")
        async with self._lock:
            self.live = self.population.live_session(agent_id)
            return self.live.agent.observe().to_payload()

    async def best_observation(self) -> Dict[str, Any]:
        async with self._lock:
            return self.population.best_agent().observe().to_payload()

    async def step_live(self, steps: int = 1, use_autopilot: bool = False) -> Dict[str, Any]:
        async with self._lock:
            session = self.live
            if session is None:
                raise LookupError("No live session")
            observation = await asyncio.to_thread(session.run, max(1, steps), use_autopilot)
        payload = observation.to_payload()
        await self._broadcast({"type": "observation", "payload": payload})
        return payload

    async def stop_live(self) -> None:
        async with self._lock:
            self.live = None

    async def _broadcast(self, message: Dict[str, Any]) -> None:
        if not self.clients:
            return
        payload = json.dumps(message)
        stale: Set[WebSocket] = set()
        for client in self.clients:
            try:
                await client.send_text(payload)
            except WebSocketDisconnect:
                stale.add(client)
        for client in stale:
            self.clients.discard(client)


app = FastAPI(title="NEAT Arena Training")
controller = TrainingController(SimulationConfig())


@app.get("/api/status")
async def status() -> JSONResponse:
    return JSONResponse(controller.status())


@app.post("/api/control/start")
async def start_training() -> JSONResponse:
    try:
        await controller.start()
    except TrainingInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return JSONResponse({"running": True})


@app.post("/api/control/stop")
async def stop_training() -> JSONResponse:
    await controller.stop()
    return JSONResponse({"running": False})


@app.get("/api/agents/best")
async def best_agent() -> JSONResponse:
    return JSONResponse(await controller.best_observation())


@app.post("/api/live/start")
async def start_live(payload: Optional[dict] = None) -> JSONResponse:
    agent_id = (payload or {}).get("agent_id")
    try:
        observation = await controller.start_live(agent_id)
    except TrainingInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown agent {agent_id}") from exc
    return JSONResponse(observation)


@app.post("/api/live/step")
async def step_live(payload: Optional[dict] = None) -> JSONResponse:
    payload = payload or {}
    try:
        observation = await controller.step_live(
            steps=int(payload.get("steps", 1)),
            use_autopilot=bool(payload.get("autopilot", False)),
        )
    except LookupError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    return JSONResponse(observation)


@app.post("/api/live/stop")
async def stop_live() -> JSONResponse:
    await controller.stop_live()
    return JSONResponse({"live": False})


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    await websocket.accept()
    controller.clients.add(websocket)
    await websocket.send_text(json.dumps({"type": "status", "payload": controller.status()}))
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        controller.clients.discard(websocket)


__all__ = ["app", "controller", "TrainingController"]
