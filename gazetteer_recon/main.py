from contextlib import asynccontextmanager
from typing import Any, Dict, Optional
import json as _json

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from .config import get_settings
from .dataset_loader import (
    DATASET_FIELDS,
    DatasetLoadError,
    check_dataset_exists,
    load_entities_from_bytes,
    load_entities_from_csv,
)
from .entity_store import EntityStore
from .extract_from_query import BatchDecodeError, decode_body, decode_fields
from .logging_config import get_logger, setup_logging
from .reconcile_logic import run_reconciliation
from .reconmodels import (
    DEFAULT_TYPES,
    EntityView,
    ReconcileQuery,
    ServiceManifest,
    ServiceView,
    StatusResponse,
    UploadResponse,
    entity_types,
)

logger = get_logger(__name__)

settings = get_settings()

#the one collection every request reads from
store = EntityStore()

MISSING_QUERIES = "Provide ?queries=..., ?query=..., form queries=..., or JSON {\"queries\":{...}}"


def load_default_dataset() -> None:
    if not settings.load_default_dataset:
        logger.info("Default dataset disabled, starting with an empty entity store")
        return
    if not check_dataset_exists(settings.dataset_path):
        return
    try:
        store.replace_entities(load_entities_from_csv(settings.dataset_path))
    except DatasetLoadError as e:
        #keep whatever collection is already published
        logger.error(f"Default dataset not loaded: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.log_level, settings.log_colours)
    load_default_dataset()
    logger.info(f"Reconciliation API ready with {len(store)} entities")
    yield


app = FastAPI(title=settings.service_name, version="0.2.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def json_response(payload: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        content=payload,
        status_code=status_code,
        media_type="application/json; charset=utf-8",
        headers={"Cache-Control": "no-store"},
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"{request.method}: {request.url.path}")
    return await call_next(request)


@app.exception_handler(BatchDecodeError)
async def batch_decode_error_handler(request: Request, exc: BatchDecodeError) -> JSONResponse:
    logger.warning(f"Rejected reconciliation request: {exc}")
    return json_response(
        {"error": "Invalid request format", "message": str(exc)},
        status_code=400,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception: {exc}")
    return json_response(
        {"error": "Internal server error", "message": str(exc)},
        status_code=500,
    )


def manifest() -> Dict[str, Any]:
    return ServiceManifest(
        name=settings.service_name,
        identifierSpace=settings.identifier_space,
        schemaSpace=settings.schema_space,
        defaultTypes=DEFAULT_TYPES,
        view=ServiceView(url=settings.view_url),
    ).model_dump()


def reconcile_payload(queries: Dict[str, ReconcileQuery]) -> Dict[str, Any]:
    #one snapshot per batch, every key sees the same collection
    entities = store.snapshot()
    results = run_reconciliation(queries, entities)
    return {qid: result.model_dump() for qid, result in results.items()}


@app.get("/")
def service_manifest():
    return json_response(manifest())


#http://localhost:3000/reconcile?queries={%22q0%22:{%22query%22:%22Toronto%22,%22limit%22:3}}
@app.get("/reconcile")
def reconcile_get(queries: Optional[str] = None,
                  query: Optional[str] = None,
                  q: Optional[str] = None):
    decoded = decode_fields(queries, query if query is not None else q)

    #no queries means service discovery
    if decoded is None:
        return json_response(manifest())

    return json_response(reconcile_payload(decoded))


@app.post("/reconcile")
async def reconcile_post(request: Request):
    content_type = request.headers.get("content-type", "")

    if "application/x-www-form-urlencoded" in content_type or "multipart/form-data" in content_type:
        form = await request.form()
        decoded = decode_fields(form.get("queries"), form.get("query"))

    elif "application/json" in content_type:
        raw = await request.body()
        try:
            body = _json.loads(raw)
        except (_json.JSONDecodeError, UnicodeDecodeError) as e:
            raise BatchDecodeError(f"request body is not valid JSON: {e}") from e
        decoded = decode_body(body)

    else:
        raise BatchDecodeError(f"Unsupported Content-Type: {content_type or 'none'}")

    if decoded is None:
        raise BatchDecodeError(MISSING_QUERIES)

    payload = await run_in_threadpool(reconcile_payload, decoded)
    return json_response(payload)


@app.post("/upload")
async def upload_dataset(file: Optional[UploadFile] = File(None)):
    if file is None or not (file.filename or "").lower().endswith(".csv"):
        return json_response({"error": "No CSV content found"}, status_code=400)

    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        return json_response(
            {
                "error": "Upload too large",
                "message": f"CSV exceeds {settings.max_upload_bytes // 1024}KB",
            },
            status_code=413,
        )

    try:
        entities = await run_in_threadpool(load_entities_from_bytes, data, file.filename)
    except DatasetLoadError as e:
        logger.error(f"Error processing uploaded CSV: {e}")
        return json_response(
            {"error": "Processing failed", "message": str(e)},
            status_code=500,
        )

    record_count = store.replace_entities(entities)
    logger.info(f"Uploaded CSV processed: {record_count} entities")

    return json_response(
        UploadResponse(
            success=True,
            message="Dataset uploaded successfully",
            recordCount=record_count,
            fields=DATASET_FIELDS,
        ).model_dump()
    )


@app.get("/entities/{entity_id}")
def entity_view(entity_id: str):
    entity = store.get(entity_id)
    if entity is None:
        return json_response(
            {"error": "Not found", "message": f"No entity with id {entity_id!r}"},
            status_code=404,
        )

    return json_response(
        EntityView(
            id=entity.id,
            name=entity.name,
            type=entity_types(entity.type),
            province=entity.province,
            latitude=entity.latitude,
            longitude=entity.longitude,
        ).model_dump()
    )


@app.get("/status")
def status():
    return json_response(
        StatusResponse(
            status="running",
            entities=len(store),
            service=settings.service_name,
            version=store.version,
        ).model_dump()
    )


@app.get("/healthy")
def health():
    return json_response({"status": "ok"})


def run() -> None:
    import uvicorn

    setup_logging(settings.log_level, settings.log_colours)
    base = f"http://{settings.host}:{settings.port}"
    logger.info(f"Reconciliation API is running at {base}/reconcile")
    logger.info(f"Upload endpoint available at {base}/upload")
    logger.info(f"Status endpoint available at {base}/status")
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


#https://www.w3.org/community/reports/reconciliation/CG-FINAL-specs-0.2-20230410/
#https://fastapi.tiangolo.com/tutorial/request-files/
#https://fastapi.tiangolo.com/advanced/response-directly/
