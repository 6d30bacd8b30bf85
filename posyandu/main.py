# posyandu/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from posyandu.api.routes import router as api_router
from posyandu.config import get_settings
from posyandu.exceptions import WizardError
from posyandu.services import init_db
from posyandu.utils.logging import get_logger, setup_logging

settings = get_settings()
setup_logging(settings.log_level, settings.log_file)

logger = get_logger(__name__)

app = FastAPI(title="Posyandu Examination API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # for dev; tighten in prod
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=True,
)


@app.exception_handler(WizardError)
async def wizard_error_handler(request: Request, exc: WizardError) -> JSONResponse:
    logger.warning("%s on %s: %s", exc.code, request.url.path, exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.on_event("startup")
def on_startup() -> None:
    init_db()


@app.get("/")
def root():
    return {"message": "Posyandu Examination API is running"}


app.include_router(api_router, prefix="/api")
