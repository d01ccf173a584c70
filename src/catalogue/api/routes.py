"""FastAPI endpoints for the Catalogue — a read-through proxy of the catalogue API."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from catalogue.api.schemas import ProductResponse
from catalogue.client import CatalogClient, get_catalog
from shared.errors import CatalogError, ProductNotFoundError

product_router = APIRouter(prefix="/products", tags=["products"])
category_router = APIRouter(prefix="/categories", tags=["categories"])


def _unavailable(exc: CatalogError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": exc.user_message})


# --- Product endpoints ---


@product_router.get("", response_model=list[ProductResponse])
async def list_products(limit: int | None = None, catalog: CatalogClient = Depends(get_catalog)):
    try:
        products = await catalog.list_products(limit=limit)
    except CatalogError as exc:
        return _unavailable(exc)
    return [ProductResponse.from_product(product) for product in products]


@product_router.get("/category/{category}", response_model=list[ProductResponse])
async def list_products_in_category(category: str, catalog: CatalogClient = Depends(get_catalog)):
    try:
        products = await catalog.list_by_category(category)
    except CatalogError as exc:
        return _unavailable(exc)
    return [ProductResponse.from_product(product) for product in products]


@product_router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, catalog: CatalogClient = Depends(get_catalog)):
    try:
        product = await catalog.get_product(product_id)
    except ProductNotFoundError as exc:
        return JSONResponse(status_code=404, content={"error": exc.user_message})
    except CatalogError as exc:
        return _unavailable(exc)
    return ProductResponse.from_product(product)


# --- Category endpoints ---


@category_router.get("", response_model=list[str])
async def list_categories(catalog: CatalogClient = Depends(get_catalog)):
    try:
        return await catalog.list_categories()
    except CatalogError as exc:
        return _unavailable(exc)
