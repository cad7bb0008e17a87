# product_catalog/main.py

"""
Product Catalog web application.
Server-rendered create, list, show, edit, update and delete pages for
products, with paginated listing and flash-message feedback.
"""
import logging
import os
import sys
import time
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from . import crud
from .db import Base, engine, get_db
from .schemas import ProductStoreRequest, ProductUpdateRequest, validate_fields
from .templating import flash, render

# -----------------------------
# Configure Logging
# -----------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

# Suppress noisy logs from third-party libraries for cleaner output
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("uvicorn.error").setLevel(logging.INFO)

# Load environment variables
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "change-me-in-production")
DEFAULT_PRODUCTS_PER_PAGE = 5
DB_CONNECT_MAX_RETRIES = int(os.getenv("DB_CONNECT_MAX_RETRIES", "10"))
DB_CONNECT_RETRY_DELAY_SECONDS = int(os.getenv("DB_CONNECT_RETRY_DELAY_SECONDS", "5"))

if "SESSION_SECRET_KEY" not in os.environ:
    logger.warning("Product Catalog: SESSION_SECRET_KEY **NOT SET**, using the development key.")


def _resolve_page_size(value: Optional[str]) -> int:
    # Page sizes below 1 would break the pager, so fall back to the default
    try:
        size = int(value) if value is not None else DEFAULT_PRODUCTS_PER_PAGE
    except ValueError:
        size = 0
    if size < 1:
        logger.warning(
            f"Invalid PRODUCTS_PER_PAGE={value!r}, using {DEFAULT_PRODUCTS_PER_PAGE}."
        )
        return DEFAULT_PRODUCTS_PER_PAGE
    return size


PRODUCTS_PER_PAGE = _resolve_page_size(os.getenv("PRODUCTS_PER_PAGE"))


# -----------------------------
# FastAPI App Initialization
# -----------------------------
app = FastAPI(
    title="Product Catalog",
    description="Server-rendered product management pages",
    version="1.0.0",
)

# Flash messages ride in the signed session cookie
app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET_KEY)


# --- FastAPI Event Handlers ---
@app.on_event("startup")
async def startup_event():
    """
    Ensures database tables exist, retrying while the database comes up.
    """
    for i in range(DB_CONNECT_MAX_RETRIES):
        try:
            logger.info(
                f"Attempting to connect to the database and create tables (attempt {i+1}/{DB_CONNECT_MAX_RETRIES})..."
            )
            Base.metadata.create_all(bind=engine)
            logger.info("Successfully connected to the database and ensured tables exist.")
            break
        except OperationalError as e:
            logger.warning(f"Failed to connect to the database: {e}")
            if i < DB_CONNECT_MAX_RETRIES - 1:
                logger.info(f"Retrying in {DB_CONNECT_RETRY_DELAY_SECONDS} seconds...")
                time.sleep(DB_CONNECT_RETRY_DELAY_SECONDS)
            else:
                logger.critical(
                    f"Failed to connect to the database after {DB_CONNECT_MAX_RETRIES} attempts. Exiting application."
                )
                sys.exit(1)
        except Exception as e:
            logger.critical(
                f"An unexpected error occurred during database startup: {e}",
                exc_info=True,
            )
            sys.exit(1)


# --- Error pages ---
@app.exception_handler(StarletteHTTPException)
async def not_found_page(request: Request, exc: StarletteHTTPException):
    """Render a plain "Not Found" page; other HTTP errors keep the default handling."""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return render(request, "errors/404.html", status_code=status.HTTP_404_NOT_FOUND)
    return await http_exception_handler(request, exc)


# --- Helpers ---
def _resolve_page(value: Optional[str]) -> int:
    # Anything that is not a positive integer means the first page
    try:
        page = int(value) if value is not None else 1
    except ValueError:
        return 1
    return page if page >= 1 else 1


def _find_product_or_404(db: Session, product_id: int):
    try:
        return crud.get_product(db, product_id)
    except crud.ProductNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)


def _redirect_to_index(request: Request, message: str) -> RedirectResponse:
    flash(request, message)
    # Form posts get 302; real PUT/PATCH/DELETE get 303 so clients follow with GET
    code = (
        status.HTTP_302_FOUND
        if request.method == "POST"
        else status.HTTP_303_SEE_OTHER
    )
    return RedirectResponse(url="/products", status_code=code)


async def _form_fields(request: Request) -> dict:
    form = await request.form()
    return {key: value for key, value in form.items() if key != "_method"}


async def _update(request: Request, product_id: int, db: Session):
    product = _find_product_or_404(db, product_id)
    raw = await _form_fields(request)
    data, errors = validate_fields(ProductUpdateRequest, raw)
    if errors:
        logger.warning(f"Rejected update of product {product_id}: {errors}")
        return render(
            request,
            "products/edit.html",
            {"product": product, "errors": errors, "old": raw},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    crud.update_product(db, product_id, data)
    return _redirect_to_index(request, "Product updated successfully.")


def _destroy(request: Request, product_id: int, db: Session):
    _find_product_or_404(db, product_id)
    crud.delete_product(db, product_id)
    return _redirect_to_index(request, "Product deleted successfully.")


# --- Root Endpoint ---
@app.get("/", summary="Root endpoint", include_in_schema=False)
async def read_root():
    return RedirectResponse(url="/products", status_code=status.HTTP_302_FOUND)


# --- Health Check Endpoint ---
@app.get("/health", status_code=status.HTTP_200_OK, summary="Health check endpoint")
async def health_check():
    """
    A simple health check endpoint to verify the service is running.
    Returns 200 OK if the service is alive.
    """
    return {"status": "ok", "service": "product-catalog"}


# -----------------------------
# Product pages
# -----------------------------


@app.get("/products", summary="List products, newest first")
def index(request: Request, page: Optional[str] = None, db: Session = Depends(get_db)):
    page_number = _resolve_page(page)
    logger.info(f"Listing products, page {page_number}")
    result = crud.list_recent(db, PRODUCTS_PER_PAGE, page_number)
    return render(request, "products/index.html", {"page": result})


@app.get("/products/create", summary="New product form")
def create(request: Request):
    return render(request, "products/create.html", {"errors": {}, "old": {}})


@app.post("/products", summary="Store a new product")
async def store(request: Request, db: Session = Depends(get_db)):
    """
    Validates the submitted form and creates the product.

    - Invalid input re-renders the form with per-field messages (422).
    - Success redirects to the listing with a flash message.
    """
    raw = await _form_fields(request)
    data, errors = validate_fields(ProductStoreRequest, raw)
    if errors:
        logger.warning(f"Rejected new product: {errors}")
        return render(
            request,
            "products/create.html",
            {"errors": errors, "old": raw},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    logger.info(f"Creating product: {data['name']}")
    crud.create_product(db, data)
    return _redirect_to_index(request, "Product created successfully.")


@app.get("/products/{product_id:int}", summary="Show a product")
def show(request: Request, product_id: int, db: Session = Depends(get_db)):
    logger.info(f"Fetching product with ID: {product_id}")
    product = _find_product_or_404(db, product_id)
    return render(request, "products/show.html", {"product": product})


@app.get("/products/{product_id:int}/edit", summary="Edit product form")
def edit(request: Request, product_id: int, db: Session = Depends(get_db)):
    product = _find_product_or_404(db, product_id)
    old = {"name": product.name, "detail": product.detail}
    return render(
        request, "products/edit.html", {"product": product, "errors": {}, "old": old}
    )


@app.api_route("/products/{product_id:int}", methods=["PUT", "PATCH"], summary="Update a product")
async def update(request: Request, product_id: int, db: Session = Depends(get_db)):
    logger.info(f"Updating product with ID: {product_id}")
    return await _update(request, product_id, db)


@app.delete("/products/{product_id:int}", summary="Delete a product")
def destroy(request: Request, product_id: int, db: Session = Depends(get_db)):
    logger.info(f"Attempting to delete product with ID: {product_id}")
    return _destroy(request, product_id, db)


@app.post("/products/{product_id:int}", summary="HTML form update/delete")
async def spoofed_method(request: Request, product_id: int, db: Session = Depends(get_db)):
    """
    HTML forms can only POST, so edit and delete forms send the intended
    verb in a hidden `_method` field.
    """
    form = await request.form()
    method = str(form.get("_method", "")).upper()
    if method in ("PUT", "PATCH"):
        logger.info(f"Updating product with ID: {product_id}")
        return await _update(request, product_id, db)
    if method == "DELETE":
        logger.info(f"Attempting to delete product with ID: {product_id}")
        return _destroy(request, product_id, db)
    raise HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        headers={"Allow": "PUT, PATCH, DELETE"},
    )
