# main.py
import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import crud
import schemas
from db import CONNECTING, ConflictError, Store, StorageError
from utils import ALLOW_DUPLICATE_NAMES, ContentKind, KeyPrefixError, kind_for_key

config.configure_logging()
log = logging.getLogger("quizstore.api")


# -----------------------------------------------------------------------------
# Store lifecycle
# -----------------------------------------------------------------------------
async def _connect_then_migrate(store: Store, delay: float):
    if await run_in_threadpool(store.connect_with_retry, delay):
        await run_in_threadpool(store.ensure_schema)


async def _watch_store(store: Store, interval: float, delay: float):
    """Ping the store every `interval` seconds; reconnect with a fixed delay when it drops."""
    while True:
        await asyncio.sleep(interval)
        if store.reconnecting or store.state == CONNECTING:
            continue
        if not await run_in_threadpool(store.ping):
            log.error("Lost database connection, reconnecting...")
            await run_in_threadpool(store.connect_with_retry, delay)


def log_startup_config():
    log.info("=== DATABASE CONFIGURATION ===")
    for field, value in config.describe_database().items():
        log.info("%s: %s", field.capitalize(), value)
    missing = config.missing_database_vars()
    if missing:
        log.error("Missing required MySQL environment variables: %s", ", ".join(missing))


def create_app(
    store: Optional[Store] = None,
    retry_delay: float = config.DB_RETRY_DELAY,
    ping_interval: float = config.DB_PING_INTERVAL,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if store is None:
            log_startup_config()
            app.state.store = Store.from_url(config.database_url())
        else:
            app.state.store = store
        s = app.state.store

        tasks = []
        if await run_in_threadpool(s.ping):
            await run_in_threadpool(s.ensure_schema)
        else:
            log.error("Database unavailable at startup. Retrying in %s seconds...", retry_delay)
            s.state = CONNECTING
            tasks.append(asyncio.create_task(_connect_then_migrate(s, retry_delay)))
        if ping_interval > 0:
            tasks.append(asyncio.create_task(_watch_store(s, ping_interval, retry_delay)))

        log.info("%s ready (health check at /health)", config.APP_NAME)
        yield

        s.stop()
        for t in tasks:
            t.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if store is None:
            s.dispose()

    app = FastAPI(
        title=config.APP_NAME,
        description=config.APP_DESCRIPTION,
        version=config.APP_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.include_router(router)
    return app


def get_store(request: Request) -> Store:
    return request.app.state.store


# -----------------------------------------------------------------------------
# Error rendering
# -----------------------------------------------------------------------------
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    content = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=content)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    log.error("Invalid data received on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid data received", "details": jsonable_encoder(exc.errors())},
    )


def storage_failure(message: str, e: StorageError) -> HTTPException:
    log.error("%s: %s", message, e)
    return HTTPException(status_code=500, detail={"error": message, "detail": str(e)})


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------

router = APIRouter()


@router.get("/health")
def health(store: Store = Depends(get_store)):
    return {
        "status": "OK",
        "message": f"{config.APP_NAME} is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": store.state,
    }


@router.get("/")
def root():
    return {
        "message": config.APP_NAME,
        "description": config.APP_DESCRIPTION,
        "version": config.APP_VERSION,
        "endpoints": {
            "crosswords": "/check-key/:key",
            "mcq": "/check-mcq/:key",
            "leaderboard": "/leaderboard/:key",
            "health": "/health",
        },
    }


# ---- content ingestion ------------------------------------------------------

@router.post("/display_question_answer", response_model=schemas.Message)
async def store_crossword(payload: schemas.CrosswordIn, store: Store = Depends(get_store)):
    log.info("Received crossword data for key %s", payload.generatedKey)
    log.info("Crossword payload: %s", payload.model_dump())
    try:
        await store.run(
            crud.store_crossword,
            payload.crosswordData,
            payload.questions,
            payload.answers,
            payload.passage,
            payload.generatedKey,
        )
    except StorageError as e:
        raise storage_failure("Failed to insert crossword data", e)
    log.info("Inserted crossword data successfully.")
    return {"message": "Crossword data inserted into MySQL successfully"}


@router.post("/export_mcq_data", response_model=schemas.Message)
async def store_mcq(payload: schemas.MCQIn, store: Store = Depends(get_store)):
    log.info("Received MCQ data for key %s", payload.generatedKey)
    log.info("MCQ payload: %s", payload.model_dump())
    try:
        await store.run(
            crud.store_mcq,
            payload.questions,
            payload.options,
            payload.correct_answers,
            payload.passage,
            payload.generatedKey,
        )
    except StorageError as e:
        raise storage_failure("Error saving MCQ", e)
    log.info("Inserted MCQ data successfully.")
    return {"message": "MCQ saved successfully"}


# ---- content lookup ---------------------------------------------------------

@router.get("/check-key/{key}", response_model=schemas.CrosswordOut, response_model_exclude_unset=True)
async def check_crossword(key: str, store: Store = Depends(get_store)):
    try:
        row = await store.run(crud.get_crossword, key)
    except StorageError as e:
        raise storage_failure("Error querying database", e)
    if row is None:
        return {"found": False}
    return {"found": True, **row}


@router.get("/check-mcq/{key}", response_model=schemas.MCQOut, response_model_exclude_unset=True)
async def check_mcq(key: str, store: Store = Depends(get_store)):
    try:
        row = await store.run(crud.get_mcq, key)
    except StorageError as e:
        raise storage_failure("Error querying MCQ", e)
    if row is None:
        return {"found": False}
    return {"found": True, **row}


@router.get("/check-key-availability/{key}", response_model=schemas.Availability)
async def check_key_availability(key: str, store: Store = Depends(get_store)):
    try:
        kind = kind_for_key(key)
    except KeyPrefixError as e:
        raise HTTPException(status_code=400, detail={"available": False, "error": str(e)})
    try:
        taken = await store.run(crud.key_exists, kind, key)
    except StorageError as e:
        log.error("Error checking key availability: %s", e)
        raise HTTPException(status_code=500, detail={"available": False, "error": "Database error"})
    return {"available": not taken}


# ---- leaderboard registration & lookup --------------------------------------

async def _find_entry(store: Store, kind: ContentKind, name: str, key: Optional[str], with_done: bool):
    try:
        entry = await store.run(crud.find_entry, kind, name, key)
    except StorageError as e:
        raise storage_failure(f"Error querying {kind.value} name", e)
    if entry is None:
        return {"found": False}
    if not with_done:
        entry.pop("is_done")
    return {"found": True, **entry}


@router.get("/check-name/{name}/{key}", response_model=schemas.EntryOut, response_model_exclude_none=True)
async def check_crossword_name(name: str, key: str, store: Store = Depends(get_store)):
    return await _find_entry(store, ContentKind.CROSSWORD, name, key, with_done=True)


@router.get("/check-mcq-name/{name}/{key}", response_model=schemas.EntryOut, response_model_exclude_none=True)
async def check_mcq_name(name: str, key: str, store: Store = Depends(get_store)):
    return await _find_entry(store, ContentKind.MCQ, name, key, with_done=True)


@router.get("/get-name/{name}", response_model=schemas.EntryOut, response_model_exclude_none=True)
async def get_crossword_name(name: str, key: Optional[str] = None, store: Store = Depends(get_store)):
    return await _find_entry(store, ContentKind.CROSSWORD, name, key, with_done=False)


@router.get("/get-mcq-name/{name}", response_model=schemas.EntryOut, response_model_exclude_none=True)
async def get_mcq_name(name: str, key: Optional[str] = None, store: Store = Depends(get_store)):
    return await _find_entry(store, ContentKind.MCQ, name, key, with_done=False)


@router.post("/save-name")
async def save_crossword_name(payload: schemas.NameIn, store: Store = Depends(get_store)):
    log.info("Received name %r for key %r", payload.name, payload.key)
    try:
        entry_id = await store.run(
            crud.register_name,
            ContentKind.CROSSWORD,
            payload.name,
            payload.key,
            ALLOW_DUPLICATE_NAMES[ContentKind.CROSSWORD],
        )
    except StorageError as e:
        raise storage_failure("Failed to save user name", e)
    return {"message": "User name saved", "id": entry_id}


@router.post("/save-mcq-name")
async def save_mcq_name(payload: schemas.NameIn, store: Store = Depends(get_store)):
    log.info("Received MCQ name %r for key %r", payload.name, payload.key)
    try:
        await store.run(
            crud.register_name,
            ContentKind.MCQ,
            payload.name,
            payload.key,
            ALLOW_DUPLICATE_NAMES[ContentKind.MCQ],
        )
    except ConflictError:
        log.warning("Duplicate entry attempted: name=%r key=%r", payload.name, payload.key)
        return {"message": "Already exists"}
    except StorageError as e:
        raise storage_failure("Failed to save MCQ user name", e)
    return {"message": "MCQ user name saved", "name": payload.name, "key": payload.key}


# ---- leaderboards ------------------------------------------------------------

@router.get("/leaderboard/{key}", response_model=schemas.CrosswordBoardOut, response_model_exclude_none=True)
async def crossword_leaderboard(key: str, store: Store = Depends(get_store)):
    try:
        rows = await store.run(crud.crossword_leaderboard, key)
    except StorageError as e:
        raise storage_failure("Error querying database", e)
    if not rows:
        return {"found": False}
    return {"found": True, "leaderboard": rows}


@router.get("/leaderboard-mcq/{key}", response_model=schemas.MCQBoardOut, response_model_exclude_none=True)
async def mcq_leaderboard(key: str, store: Store = Depends(get_store)):
    try:
        rows = await store.run(crud.mcq_leaderboard, key)
    except StorageError as e:
        raise storage_failure("Error querying database", e)
    if not rows:
        return {"found": False}
    return {"found": True, "leaderboard": rows}


# ---- completion ---------------------------------------------------------------

@router.post("/update-is-done", response_model=schemas.Success)
async def update_is_done(payload: schemas.CrosswordDoneIn, store: Store = Depends(get_store)):
    log.info("Crossword done: key=%r name=%r time=%r", payload.key, payload.name, payload.time)
    try:
        touched = await store.run(crud.mark_crossword_done, payload.key, payload.name, payload.time)
    except StorageError as e:
        raise storage_failure("Error updating is_done", e)
    if not touched:
        log.warning("No crossword entry for key=%r name=%r", payload.key, payload.name)
    return {"success": True}


@router.post("/update-mcq-result", response_model=schemas.Success)
async def update_mcq_result(payload: schemas.MCQResultIn, store: Store = Depends(get_store)):
    log.info(
        "MCQ result: key=%r name=%r score=%r time=%r",
        payload.key, payload.name, payload.score, payload.time,
    )
    try:
        touched = await store.run(
            crud.record_mcq_result, payload.name, payload.key, payload.score, payload.time
        )
    except StorageError as e:
        raise storage_failure("Error updating MCQ result", e)
    if not touched:
        log.warning("No MCQ entry for key=%r name=%r", payload.key, payload.name)
    return {"success": True}


app = create_app()

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
