import asyncio
import os
from datetime import datetime

from fastapi import FastAPI, HTTPException

from .config import load_config
from .logging_config import get_logger, setup_logging
from .monitor import loop_submitter, start_watching, stop_watching
from .organizer import Organizer
from .scheduler import start_scheduler, stop_scheduler

app = FastAPI(title="medialink")
logger = get_logger("main")

state = {
    "config": None,
    "organizer": None,
    "observer": None,
    "initial_task": None,
    "last_run": None,
    "last_result": [],
}


def _organizer() -> Organizer:
    organizer = state["organizer"]
    if organizer is None:
        raise HTTPException(status_code=503, detail="organizer not started")
    return organizer


def _record(result):
    state["last_run"] = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    state["last_result"] = result


async def run_once():
    result = await _organizer().organize_all()
    _record(result)
    return result


async def _initial_run():
    try:
        await run_once()
    except Exception:
        logger.exception("Initial organize pass failed")


@app.on_event("startup")
async def startup_event():
    cfg = load_config()
    setup_logging(cfg.settings.log_level, cfg.settings.log_file)
    state["config"] = cfg

    organizer = Organizer(cfg.rules)
    state["organizer"] = organizer
    for rule in cfg.rules:
        if rule.enabled:
            os.makedirs(rule.target_path, exist_ok=True)

    start_scheduler(run_once, cfg.settings.rescan_cron)

    if cfg.settings.watch:
        submit = loop_submitter(asyncio.get_running_loop())
        state["observer"] = start_watching(organizer, submit, use_polling=cfg.settings.use_polling)

    if cfg.settings.run_on_startup:
        state["initial_task"] = asyncio.create_task(_initial_run())

    logger.info("Started with %d rule(s)", len(cfg.rules))


@app.on_event("shutdown")
def shutdown_event():
    stop_watching(state["observer"])
    state["observer"] = None
    stop_scheduler()


@app.get("/")
def summary():
    organizer = _organizer()
    return {
        "rules": [
            {
                "index": layer.index,
                "name": layer.rule.name,
                "enabled": layer.rule.enabled,
                "directories": layer.rule.directories,
                "target_path": layer.rule.target_path,
            }
            for layer in organizer.layers
        ],
        "links": len(organizer.registry),
        "last_run": state["last_run"],
        "last_result": state["last_result"],
    }


@app.post("/run")
async def run_now():
    return await run_once()


@app.post("/rules/{rule_index}/run")
async def run_rule(rule_index: int):
    layers = _organizer().layers
    if not 0 <= rule_index < len(layers):
        raise HTTPException(status_code=404, detail="rule not found")
    result = await layers[rule_index].organize_directory()
    _record([result])
    return result


@app.get("/links")
def links():
    return _organizer().registry.snapshot()


@app.get("/health")
def health():
    return {"ok": True, "last_run": state["last_run"]}
