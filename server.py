from fastapi import FastAPI, HTTPException
from experiment import run_sweep
from pydantic import BaseModel
from typing import List, Optional
import asyncio
from concurrent.futures import ThreadPoolExecutor

from errors import FatalConfigError
from profiles import select_profiles
from settings import BenchSettings

app = FastAPI()

# One worker: only one daemon instance may own the LED at a time
executor = ThreadPoolExecutor(max_workers=1)


@app.get("/")
async def root():
    return {"message": "nvme-led-bench"}


class SweepRequest(BaseModel):
    profiles: Optional[List[str]] = None
    sample_seconds_idle: Optional[int] = None
    sample_seconds_active: Optional[int] = None
    nvme_device: Optional[str] = None


@app.post("/sweep")
async def sweep(req: SweepRequest):
    """
    Run a profile sweep and return its rows.
    Executes in a thread so the FastAPI server stays responsive.
    """
    try:
        settings = BenchSettings.from_env(
            sample_seconds_idle=req.sample_seconds_idle,
            sample_seconds_active=req.sample_seconds_active,
            nvme_device=req.nvme_device,
        )
        profiles = select_profiles(req.profiles)
    except (FatalConfigError, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        loop = asyncio.get_running_loop()
        rows = await loop.run_in_executor(executor, lambda: run_sweep(settings, profiles))
    except FatalConfigError as e:
        raise HTTPException(status_code=500, detail=str(e))

    return {"status": "ok", "rows": [row.to_dict() for row in rows]}
