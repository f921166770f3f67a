import os
import sys
import time
import uuid
from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from loguru import logger
from dotenv import load_dotenv
from typing import Any, Dict, List, Optional
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from auth import StaticTokenVerifier, require_credentials
from errors import ProductAPIError, missing_fields, not_found
from models import Product, products_db
from schemas import ProductCreate, ProductResponse, ProductUpdate, is_truthy, to_boolean, to_number

# Chargement des variables d'environnement
load_dotenv()

SERVICE_NAME = "products-service"
API_TOKEN = os.getenv("API_TOKEN", "valid-token")
LOG_FILE = os.getenv("LOG_FILE", "logs.json")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

WELCOME_MESSAGE = "Welcome to the Product API! Go to /api/products to see all products."


# sys.stdout / sys.stderr sont résolus à chaque écriture (redirections, capture)
def _stdout_sink(message):
    sys.stdout.write(message)
    sys.stdout.flush()


def _stderr_sink(message):
    sys.stderr.write(message)
    sys.stderr.flush()


# Config logging: requêtes sur stdout, erreurs sur stderr, JSON dans LOG_FILE
logger.remove()
logger.add(
    _stdout_sink,
    format="[{time:YYYY-MM-DDTHH:mm:ss.SSS!UTC}Z] {message}",
    level=LOG_LEVEL,
    filter=lambda record: record["level"].no < 40,
)
logger.add(
    _stderr_sink,
    format="[{time:YYYY-MM-DDTHH:mm:ss.SSS!UTC}Z] {level} | {message}",
    level="ERROR",
    backtrace=False,
    diagnose=False,
)
if LOG_FILE:
    logger.add(
        sink=LOG_FILE,
        format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
        level=LOG_LEVEL,
        serialize=True,
        rotation="1 day",
    )

# Prometheus metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["service", "method", "endpoint"]
)
ERROR_COUNT = Counter(
    "http_errors_total",
    "Total HTTP errors",
    ["service", "endpoint", "error_type"]
)

app = FastAPI(title="Product API", redirect_slashes=False)
app.state.verifier = StaticTokenVerifier(API_TOKEN)


class OptionalTrailingSlashMiddleware:
    """Route /api/products/ comme /api/products, sans redirection."""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        path = scope.get("path", "")
        if scope["type"] == "http" and len(path) > 1 and path.endswith("/"):
            scope = dict(scope, path=path[:-1])
        await self.app(scope, receive, send)


app.add_middleware(OptionalTrailingSlashMiddleware)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def json_body(request: Request) -> Dict[str, Any]:
    """
    Corps JSON de la requête.
    {} s'il est absent, d'un autre content-type ou si ce n'est pas un objet.
    Un JSON mal formé lève une erreur et finit en 500.
    """
    if "json" not in request.headers.get("content-type", ""):
        return {}
    raw = await request.body()
    if not raw.strip():
        return {}
    body = await request.json()
    return body if isinstance(body, dict) else {}


# Middleware: log des requêtes, correlation ID, métriques et filet 500
@app.middleware("http")
async def log_requests(request: Request, call_next):
    # Generate or propagate correlation ID (trace-id)
    trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
    start_time = time.time()
    url = request.url.path + (f"?{request.url.query}" if request.url.query else "")

    with logger.contextualize(trace_id=trace_id, service=SERVICE_NAME):
        logger.info(f"{request.method} {url}")

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {url}")
            ERROR_COUNT.labels(
                service=SERVICE_NAME,
                endpoint=request.url.path,
                error_type="unhandled_exception"
            ).inc()
            response = error_response(500, "Something went wrong!")

        latency = time.time() - start_time

        REQUEST_COUNT.labels(
            service=SERVICE_NAME,
            method=request.method,
            endpoint=request.url.path,
            status=response.status_code
        ).inc()
        REQUEST_LATENCY.labels(
            service=SERVICE_NAME,
            method=request.method,
            endpoint=request.url.path
        ).observe(latency)

        logger.debug(
            f"Response status: {response.status_code}",
            extra={"status": response.status_code, "latency": latency}
        )

        response.headers["X-Trace-ID"] = trace_id
        return response


@app.exception_handler(ProductAPIError)
async def product_api_error_handler(request: Request, exc: ProductAPIError):
    ERROR_COUNT.labels(service=SERVICE_NAME, endpoint=request.url.path, error_type=exc.error_type).inc()
    return error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    # Aucune route pour ce chemin ou cette méthode
    if exc.status_code in (404, 405):
        ERROR_COUNT.labels(service=SERVICE_NAME, endpoint=request.url.path, error_type="endpoint_not_found").inc()
        return error_response(404, "Endpoint not found")
    return error_response(exc.status_code, str(exc.detail))


@app.get("/metrics")
async def metrics():
    """Endpoint /metrics compatible Prometheus"""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.get("/health")
async def health():
    """Health check endpoint"""
    return {"status": "healthy", "service": SERVICE_NAME}


@app.get("/", response_class=PlainTextResponse)
async def root():
    return WELCOME_MESSAGE


@app.get("/api/products", response_model=List[ProductResponse])
async def list_products(category: Optional[str] = None, inStock: Optional[str] = None):
    """
    Liste les produits dans l'ordre d'insertion.
    category filtre par égalité exacte, inStock vaut "true" ou n'importe quoi d'autre (false).
    """
    products = products_db.all()
    if category:
        products = [p for p in products if p.category == category]
    if inStock:
        wanted = inStock == "true"
        products = [p for p in products if p.inStock == wanted]
    logger.info(f"Listing {len(products)} products")
    return products


@app.get("/api/products/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str):
    product = products_db.get(product_id)
    if not product:
        logger.warning(f"Product {product_id} not found")
        raise not_found()
    return product


@app.post(
    "/api/products",
    response_model=ProductResponse,
    status_code=201,
    dependencies=[Depends(require_credentials)],
)
async def create_product(body: Dict[str, Any] = Depends(json_body)):
    payload = ProductCreate.model_validate(body)
    if not payload.is_complete():
        logger.warning("Create rejected: missing required fields")
        raise missing_fields()

    new_product = Product(
        id=products_db.next_id(),
        name=payload.name,
        description=payload.description,
        price=to_number(payload.price),
        category=payload.category,
        inStock=to_boolean(payload.inStock),
    )
    products_db.insert(new_product)
    logger.info(f"Product created with ID {new_product.id}")
    return new_product


@app.put(
    "/api/products/{product_id}",
    response_model=ProductResponse,
    dependencies=[Depends(require_credentials)],
)
async def update_product(product_id: str, body: Dict[str, Any] = Depends(json_body)):
    existing = products_db.get(product_id)
    if not existing:
        logger.warning(f"Product {product_id} not found")
        raise not_found()

    payload = ProductUpdate.model_validate(body)
    provided = payload.model_fields_set
    # Les champs texte vides ne remplacent pas, price/inStock dès qu'ils sont fournis
    updated = existing.model_copy(update={
        "name": payload.name if is_truthy(payload.name) else existing.name,
        "description": payload.description if is_truthy(payload.description) else existing.description,
        "price": to_number(payload.price) if "price" in provided else existing.price,
        "category": payload.category if is_truthy(payload.category) else existing.category,
        "inStock": to_boolean(payload.inStock) if "inStock" in provided else existing.inStock,
    })
    products_db.replace(updated)
    logger.info(f"Product {product_id} updated")
    return updated


@app.delete(
    "/api/products/{product_id}",
    status_code=204,
    response_class=Response,
    dependencies=[Depends(require_credentials)],
)
async def delete_product(product_id: str):
    if not products_db.remove(product_id):
        logger.warning(f"Product {product_id} not found")
        raise not_found()
    logger.info(f"Product {product_id} deleted")
    return Response(status_code=204)


if __name__ == "__main__":
    port = int(os.getenv("PORT", 3000))
    host = os.getenv("HOST", "0.0.0.0")
    logger.info(f"Server is running on http://localhost:{port}")
    import uvicorn
    uvicorn.run(app, host=host, port=port)
