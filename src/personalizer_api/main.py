"""Main FastAPI application for the Personalizer API."""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings, get_settings
from .exceptions import ClientNotFound, PersonalizerError, TokenNotFound
from .services.client_pages import ClientPageService
from .services.client_store import ClientStore
from .services.github_mirror import GitHubMirror
from .services.logo_resolver import ShopifyMediaResolver
from .services.page_storage import LocalPageStorage, MirroredPageStorage, PageStorage, page_key
from .services.personalization_pipeline import PersonalizationPipeline, build_text_personalizer
from .services.token_store import ShopifyTokenStore
from .services.upload_handler import UploadHandler

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


class CreateClientRequest(BaseModel):
    """Request model for creating a personalized client page."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: Optional[str] = None
    logo_url: Optional[str] = Field(default=None, alias="logoUrl")
    logo_gid: Optional[str] = Field(default=None, alias="logoGid")
    shop: Optional[str] = None


class ShopifyTokenRequest(BaseModel):
    """Token relayed by the Shopify app after its OAuth callback."""

    model_config = ConfigDict(populate_by_name=True)

    shop: Optional[str] = None
    access_token: Optional[str] = Field(default=None, alias="accessToken")
    scope: Optional[str] = None


@dataclass
class AppServices:
    """Long-lived collaborators shared by every request."""

    settings: Settings
    clients: ClientPageService
    storage: PageStorage
    tokens: ShopifyTokenStore
    uploads: UploadHandler


def build_services(settings: Settings) -> AppServices:
    """Wire stores, storage and pipeline from *settings*."""
    local = LocalPageStorage(settings.public_dir)
    storage: PageStorage = local
    if settings.github_enabled:
        storage = MirroredPageStorage(
            local,
            GitHubMirror(
                token=settings.github_token,
                repo=settings.github_repo,
                branch=settings.github_branch,
                path_prefix=settings.github_path_prefix,
            ),
        )

    tokens = ShopifyTokenStore()
    pipeline = PersonalizationPipeline(build_text_personalizer(settings))
    clients = ClientPageService(
        template_path=settings.template_path,
        store=ClientStore(settings.clients_file),
        storage=storage,
        pipeline=pipeline,
        media_resolver=ShopifyMediaResolver(tokens, settings.shopify_api_version),
    )
    if not pipeline.llm_enabled:
        logger.warning("OPENAI_API_KEY not set, pages will use placeholder substitution")

    return AppServices(
        settings=settings,
        clients=clients,
        storage=storage,
        tokens=tokens,
        uploads=UploadHandler(storage, settings.max_upload_bytes),
    )


def get_services(request: Request) -> AppServices:
    return request.app.state.services


def _request_id() -> str:
    return uuid.uuid4().hex[:8]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _base_url(request: Request, settings: Settings) -> str:
    return settings.public_base_url or str(request.base_url)


async def _frame_headers(request: Request, call_next):
    # Pages are embedded in the Shopify admin and third-party sites
    response = await call_next(request)
    response.headers["X-Frame-Options"] = "ALLOWALL"
    response.headers["Content-Security-Policy"] = "frame-ancestors *"
    return response


async def _personalizer_error_handler(request: Request, exc: PersonalizerError):
    return _error(exc.status_code, str(exc))


async def _request_validation_handler(request: Request, exc: RequestValidationError):
    # Malformed bodies share the {success, error} shape of other 400s
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        details.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    message = "Solicitud inválida"
    if details:
        message = f"{message} ({'; '.join(details)})"
    return _error(400, message)


async def _store_upload(services: AppServices, upload: Optional[UploadFile], prefix: str):
    if upload is None:
        return _error(400, "No se recibió ningún archivo")

    # One byte over the limit is enough to reject
    content = await upload.read(services.settings.max_upload_bytes + 1)
    result = await services.uploads.store(upload.filename, upload.content_type, content, prefix)
    return {"success": True, "url": result.url, "filename": result.filename}


def create_app(settings: Optional[Settings] = None, services: Optional[AppServices] = None) -> FastAPI:
    """Build the FastAPI application with its services attached to ``app.state``."""
    if services is None:
        services = build_services(settings or get_settings())

    app = FastAPI(
        title="Personalizer API",
        description="Personalize a landing-page template per client using OpenAI",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.middleware("http")(_frame_headers)
    app.add_exception_handler(PersonalizerError, _personalizer_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)

    uploads_dir = services.settings.public_dir / "uploads"
    uploads_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(uploads_dir)), name="uploads")

    @app.get("/", response_class=HTMLResponse)
    async def root(services: AppServices = Depends(get_services)):
        """Serve the unmodified template."""
        return HTMLResponse(content=services.clients.read_template())

    @app.get("/api")
    async def api_info():
        """API information."""
        return {
            "message": "Personalizer API",
            "version": API_VERSION,
            "endpoints": {
                "create_client": "/api/create-client",
                "client_page": "/client/{clientId}",
                "docs": "/docs",
                "health": "/health",
            },
        }

    @app.get("/health")
    async def health_check():
        """Liveness probe."""
        return {
            "status": "ok",
            "service": "personalizer-api",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/api/create-client")
    async def create_client(
        body: CreateClientRequest,
        request: Request,
        services: AppServices = Depends(get_services),
    ):
        """
        Personalize the template for a new client.

        Returns the client id and the shareable URL of the rendered page.
        """
        request_id = _request_id()
        try:
            created = await services.clients.create_client(
                body.prompt,
                base_url=_base_url(request, services.settings),
                logo_url=body.logo_url,
                logo_gid=body.logo_gid,
                shop=body.shop,
                request_id=request_id,
            )
        except PersonalizerError:
            raise
        except Exception as e:
            logger.exception(f"[{request_id}] Failed to create client")
            return _error(500, str(e))

        return {
            "success": True,
            "clientId": created.record.id,
            "url": created.share_url,
            "message": "Cliente creado exitosamente",
            "createdAt": created.record.created_at.isoformat(),
        }

    @app.get("/client/{client_id}", response_class=HTMLResponse)
    async def client_page(client_id: str, services: AppServices = Depends(get_services)):
        """Serve a client's page from cache, regenerating it when missing."""
        request_id = _request_id()
        try:
            html = await services.clients.render_client_page(client_id, request_id)
        except ClientNotFound:
            return PlainTextResponse("Cliente no encontrado", status_code=404)
        except Exception:
            logger.exception(f"[{request_id}] Failed to serve page for {client_id}")
            return PlainTextResponse("Error al cargar la página", status_code=500)
        return HTMLResponse(content=html)

    @app.get("/api/clients")
    async def list_clients(services: AppServices = Depends(get_services)):
        return {"clients": [record.to_dict() for record in services.clients.store.list()]}

    @app.get("/api/client/{client_id}")
    async def get_client(client_id: str, services: AppServices = Depends(get_services)):
        """Return the stored client record."""
        return services.clients.get_client(client_id).to_dict()

    @app.get("/api/client/{client_id}/mirror")
    async def client_mirror_status(client_id: str, services: AppServices = Depends(get_services)):
        """Report whether the client's page has been committed to the GitHub mirror."""
        services.clients.get_client(client_id)
        status = services.storage.mirror_status(page_key(client_id))
        if status is None:
            return {"key": page_key(client_id), "state": "disabled"}
        return status.to_dict()

    @app.post("/api/upload-logo")
    async def upload_logo(
        logo: Optional[UploadFile] = File(None),
        services: AppServices = Depends(get_services),
    ):
        return await _store_upload(services, logo, "logo")

    @app.post("/api/upload-image")
    async def upload_image(
        image: Optional[UploadFile] = File(None),
        services: AppServices = Depends(get_services),
    ):
        return await _store_upload(services, image, "image")

    @app.post("/api/shopify/token")
    async def save_shopify_token(
        body: ShopifyTokenRequest, services: AppServices = Depends(get_services)
    ):
        """Store the access token relayed by the Shopify app."""
        token = services.tokens.save(body.shop, body.access_token, body.scope)
        return {"success": True, "shop": token.shop}

    @app.get("/api/shopify/token/{shop}")
    async def get_shopify_token(shop: str, services: AppServices = Depends(get_services)):
        token = services.tokens.get(shop)
        if token is None:
            raise TokenNotFound("Token no encontrado")
        return {"success": True, **token.to_dict()}

    @app.get("/api/shopify/tokens")
    async def list_shopify_tokens(services: AppServices = Depends(get_services)):
        return {
            "success": True,
            "tokens": [token.to_dict(masked=True) for token in services.tokens.list()],
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=3000)
