"""
Product catalog API endpoints

- /api/v1/categories - product categories (public list, admin writes)
- /api/v1/brands - brands (public list, admin writes)
- /api/v1/products - products (public storefront reads, staff writes)

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from app.core.auth import TokenUser, get_current_user_optional, require_admin, require_staff
from app.core.responses import Pagination, paginated_response, success_response
from app.domain.product import (
    BrandCreate, BrandUpdate, CategoryCreate, CategoryUpdate,
    ProductCreate, ProductUpdate, StockUpdate,
)
from app.services.catalog_service import CatalogService

# ============================================================================
# ROUTERS
# ============================================================================

categories_router = APIRouter()
brands_router = APIRouter()
products_router = APIRouter()


def get_catalog_service() -> CatalogService:
    return CatalogService()


def _active_only(include_inactive: bool, user: Optional[TokenUser]) -> bool:
    return not (include_inactive and user is not None and user.is_staff)


# ============================================================================
# CATEGORIES
# ============================================================================

@categories_router.get("")
async def list_categories(
    include_inactive: bool = Query(False, description="Staff only: include inactive categories"),
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: CatalogService = Depends(get_catalog_service),
):
    return success_response(service.list_taxonomy("category", _active_only(include_inactive, user)))


@categories_router.get("/slug/{slug}")
async def get_category_by_slug(slug: str, service: CatalogService = Depends(get_catalog_service)):
    return success_response(service.get_taxonomy_by_slug("category", slug))


@categories_router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
async def create_category(payload: CategoryCreate, service: CatalogService = Depends(get_catalog_service)):
    return success_response(service.create_category(payload), "Category created")


@categories_router.put("/{category_id}", dependencies=[Depends(require_admin)])
async def update_category(category_id: int, payload: CategoryUpdate,
                          service: CatalogService = Depends(get_catalog_service)):
    return success_response(service.update_category(category_id, payload), "Category updated")


@categories_router.delete("/{category_id}", dependencies=[Depends(require_admin)])
async def delete_category(category_id: int, service: CatalogService = Depends(get_catalog_service)):
    service.delete_taxonomy("category", category_id)
    return success_response(message="Category deleted")


# ============================================================================
# BRANDS
# ============================================================================

@brands_router.get("")
async def list_brands(
    include_inactive: bool = Query(False, description="Staff only: include inactive brands"),
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: CatalogService = Depends(get_catalog_service),
):
    return success_response(service.list_taxonomy("brand", _active_only(include_inactive, user)))


@brands_router.get("/slug/{slug}")
async def get_brand_by_slug(slug: str, service: CatalogService = Depends(get_catalog_service)):
    return success_response(service.get_taxonomy_by_slug("brand", slug))


@brands_router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_admin)])
async def create_brand(payload: BrandCreate, service: CatalogService = Depends(get_catalog_service)):
    return success_response(service.create_brand(payload), "Brand created")


@brands_router.put("/{brand_id}", dependencies=[Depends(require_admin)])
async def update_brand(brand_id: int, payload: BrandUpdate,
                       service: CatalogService = Depends(get_catalog_service)):
    return success_response(service.update_brand(brand_id, payload), "Brand updated")


@brands_router.delete("/{brand_id}", dependencies=[Depends(require_admin)])
async def delete_brand(brand_id: int, service: CatalogService = Depends(get_catalog_service)):
    service.delete_taxonomy("brand", brand_id)
    return success_response(message="Brand deleted")


# ============================================================================
# PRODUCTS
# ============================================================================

@products_router.get("")
async def list_products(
    category: Optional[int] = Query(None, description="Category id"),
    brand: Optional[int] = Query(None, description="Brand id"),
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    tags: Optional[List[str]] = Query(None, description="Match any of these tags"),
    status_filter: Optional[str] = Query(None, alias="status"),
    is_visible: Optional[bool] = Query(None),
    is_featured: Optional[bool] = Query(None),
    on_sale: Optional[bool] = Query(None),
    in_stock: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, description="Search by name, SKU or description"),
    sort: str = Query("latest", pattern="^(latest|price_asc|price_desc|name)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: CatalogService = Depends(get_catalog_service),
):
    """
    Storefront product listing

    Guests and customers only see active, visible products; staff can
    filter on any status.
    """
    pagination = Pagination.from_params(page, limit)
    filters = {
        "category_id": category,
        "brand_id": brand,
        "tags": tags,
        "status": status_filter,
        "is_visible": is_visible,
        "is_featured": is_featured,
        "on_sale": on_sale,
        "in_stock": in_stock,
        "search": search,
        **CatalogService.price_filters(min_price, max_price),
    }
    products, total = service.list_products(
        filters, is_staff=bool(user and user.is_staff), sort=sort,
        limit=pagination.limit, offset=pagination.offset,
    )
    return paginated_response(products, pagination, total)


@products_router.get("/featured")
async def featured_products(
    limit: int = Query(8, ge=1, le=50),
    service: CatalogService = Depends(get_catalog_service),
):
    return success_response(service.featured_products(limit))


@products_router.get("/slug/{slug}")
async def get_product_by_slug(
    slug: str,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: CatalogService = Depends(get_catalog_service),
):
    return success_response(service.get_product_by_slug(slug, is_staff=bool(user and user.is_staff)))


@products_router.get("/{product_id}")
async def get_product(
    product_id: int,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: CatalogService = Depends(get_catalog_service),
):
    return success_response(service.get_product(product_id, is_staff=bool(user and user.is_staff)))


@products_router.post("", status_code=status.HTTP_201_CREATED, dependencies=[Depends(require_staff)])
async def create_product(payload: ProductCreate, service: CatalogService = Depends(get_catalog_service)):
    return success_response(service.create_product(payload), "Product created")


@products_router.put("/{product_id}", dependencies=[Depends(require_staff)])
async def update_product(product_id: int, payload: ProductUpdate,
                         service: CatalogService = Depends(get_catalog_service)):
    return success_response(service.update_product(product_id, payload), "Product updated")


@products_router.patch("/{product_id}/stock", dependencies=[Depends(require_staff)])
async def update_stock(product_id: int, payload: StockUpdate,
                       service: CatalogService = Depends(get_catalog_service)):
    return success_response(service.update_stock(product_id, payload), "Stock updated")


@products_router.delete("/{product_id}", dependencies=[Depends(require_staff)])
async def delete_product(product_id: int, service: CatalogService = Depends(get_catalog_service)):
    service.delete_product(product_id)
    return success_response(message="Product deleted")
