from contextlib import asynccontextmanager
import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from app.models.setup import HealthResponse
from app.routes.setup import router as setup_router
from app.services.config import BridgeSetupConfig
from app.services.dependencies import get_bridge_files_service_from_app
from app.services.setup_errors import BridgeSetupError, MissingMatrixUserError


logger = logging.getLogger(__name__)


def _ensure_logging(level: str = "INFO") -> None:
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    else:
        root.setLevel(level)
        for handler in root.handlers:
            handler.setFormatter(formatter)


def create_app(config: Optional[BridgeSetupConfig] = None) -> FastAPI:
    """Build the setup API around a configuration resolved once, up front."""

    setup_config = config or BridgeSetupConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _ensure_logging(setup_config.log_level)
        data_dir = get_bridge_files_service_from_app(app).ensure_data_dir()
        logger.info(
            "Bridge setup ready (bridge data=%s, synapse data=%s, domain=%s)",
            data_dir,
            setup_config.synapse_data_path,
            setup_config.synapse_domain,
        )
        yield

    app = FastAPI(title="Telegram Bridge Setup", lifespan=lifespan)
    app.state.bridge_setup_config = setup_config
    app.include_router(setup_router)

    @app.exception_handler(MissingMatrixUserError)
    async def missing_matrix_user_handler(request: Request, exc: MissingMatrixUserError) -> JSONResponse:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed request bodies are client errors, reported in the same `{"error"}` shape."""

        messages = [str(err.get("msg", "")) for err in exc.errors()]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "; ".join(m for m in messages if m) or "Invalid request"},
        )

    @app.exception_handler(BridgeSetupError)
    async def bridge_setup_error_handler(request: Request, exc: BridgeSetupError) -> JSONResponse:
        """Map service-layer failures (I/O, serialization) to HTTP 500.

        The underlying cause message is returned as-is so the operator can act on
        it (e.g. a permissions problem on the mounted data dir).
        """
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": str(exc)},
        )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse()

    return app


app = create_app()


def main() -> None:
    config = BridgeSetupConfig.from_env()
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
