"""
Catalog Service - categories, brands and products

Public reads of brands, categories and featured products are cached;
every catalog write drops the whole catalog prefix.

Author: TM3
Date: 2025-10-17
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Union

from app.core.cache import get_cache
from app.core.clock import utcnow
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.core.text import slugify, unique_slug
from app.domain.product import (
    Product, Category, Brand,
    ProductCreate, ProductUpdate, StockUpdate,
    CategoryCreate, CategoryUpdate, BrandCreate, BrandUpdate,
)
from app.repositories.catalog_repository import CategoryRepository, BrandRepository
from app.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

CACHE_PREFIX = "catalog:"
CATALOG_CACHE_TTL = 300


class CatalogService:
    """Business logic for the product catalog"""

    def __init__(
        self,
        products: Optional[ProductRepository] = None,
        categories: Optional[CategoryRepository] = None,
        brands: Optional[BrandRepository] = None,
        cache=None,
    ):
        self.products = products or ProductRepository()
        self.categories = categories or CategoryRepository()
        self.brands = brands or BrandRepository()
        self.cache = cache or get_cache()

    def _invalidate(self):
        self.cache.delete_prefix(CACHE_PREFIX)

    def _cached(self, key: str, loader):
        full_key = f"{CACHE_PREFIX}{key}"
        cached = self.cache.get(full_key)
        if cached is not None:
            return cached
        value = loader()
        self.cache.set(full_key, value, CATALOG_CACHE_TTL)
        return value

    # =========================================================================
    # Categories and brands
    # =========================================================================

    def _taxonomy(self, kind: str):
        return (self.categories, "Category") if kind == "category" else (self.brands, "Brand")

    def list_taxonomy(self, kind: str, active_only: bool = True) -> List[Dict]:
        repo, _ = self._taxonomy(kind)
        return self._cached(
            f"{kind}:list:{int(active_only)}",
            lambda: [entity.to_dict() for entity in repo.find_all(active_only=active_only)],
        )

    def get_taxonomy_by_slug(self, kind: str, slug: str) -> Dict:
        repo, label = self._taxonomy(kind)

        def load():
            entity = repo.find_by_slug(slug)
            return entity.to_dict() if entity else None

        data = self._cached(f"{kind}:slug:{slug}", load)
        if data is None:
            raise NotFoundError(label, message=f"{label} not found")
        return data

    def create_taxonomy(self, kind: str, payload) -> Union[Category, Brand]:
        repo, label = self._taxonomy(kind)
        data = payload.model_dump()
        slug = slugify(data.get("slug") or data["name"])
        if not slug:
            raise ValidationError(f"{label} name must contain letters or digits")
        if repo.slug_exists(slug):
            raise ConflictError(f"{label} slug already exists")
        data["slug"] = slug

        entity = repo.create(data)
        self._invalidate()
        logger.info(f"Created {kind} {entity.id} ({entity.slug})")
        return entity

    def update_taxonomy(self, kind: str, entity_id: int, payload) -> Union[Category, Brand]:
        repo, label = self._taxonomy(kind)
        if not repo.find_by_id(entity_id):
            raise NotFoundError(label, entity_id)

        fields = payload.model_dump(exclude_unset=True)
        if fields.get("slug"):
            fields["slug"] = slugify(fields["slug"])
            if repo.slug_exists(fields["slug"], exclude_id=entity_id):
                raise ConflictError(f"{label} slug already exists")

        entity = repo.update(entity_id, fields)
        self._invalidate()
        return entity

    def delete_taxonomy(self, kind: str, entity_id: int) -> None:
        repo, label = self._taxonomy(kind)
        if not repo.find_by_id(entity_id):
            raise NotFoundError(label, entity_id)
        if repo.count_products(entity_id) > 0:
            raise ValidationError(f"Cannot delete {label.lower()} with products")

        repo.delete(entity_id)
        self._invalidate()
        logger.info(f"Deleted {kind} {entity_id}")

    # Typed wrappers used by the routers

    def create_category(self, payload: CategoryCreate) -> Category:
        return self.create_taxonomy("category", payload)

    def update_category(self, category_id: int, payload: CategoryUpdate) -> Category:
        return self.update_taxonomy("category", category_id, payload)

    def create_brand(self, payload: BrandCreate) -> Brand:
        return self.create_taxonomy("brand", payload)

    def update_brand(self, brand_id: int, payload: BrandUpdate) -> Brand:
        return self.update_taxonomy("brand", brand_id, payload)

    # =========================================================================
    # Products
    # =========================================================================

    def list_products(self, filters: Dict, is_staff: bool, sort: str,
                      limit: int, offset: int) -> Tuple[List[Product], int]:
        """Public callers only ever see active, visible products"""
        filters = dict(filters)
        if not is_staff:
            filters["status"] = "active"
            filters["is_visible"] = True
        return self.products.find_all(sort=sort, limit=limit, offset=offset, **filters)

    def featured_products(self, limit: int = 8) -> List[Dict]:
        return self._cached(
            f"products:featured:{limit}",
            lambda: [product.to_dict() for product in self.products.find_featured(limit)],
        )

    def get_product(self, product_id: int, is_staff: bool = False) -> Product:
        product = self.products.find_by_id(product_id)
        if not product or (not is_staff and not (product.status == "active" and product.is_visible)):
            raise NotFoundError("Product", product_id)
        return product

    def get_product_by_slug(self, slug: str, is_staff: bool = False) -> Product:
        product = self.products.find_by_slug(slug)
        if not product or (not is_staff and not (product.status == "active" and product.is_visible)):
            raise NotFoundError("Product", message="Product not found")
        return product

    def _check_references(self, category_id: Optional[int], brand_id: Optional[int]):
        if category_id is not None and not self.categories.find_by_id(category_id):
            raise NotFoundError("Category", category_id)
        if brand_id is not None and not self.brands.find_by_id(brand_id):
            raise NotFoundError("Brand", brand_id)

    def create_product(self, payload: ProductCreate) -> Product:
        data = payload.model_dump()
        self._check_references(data.get("category_id"), data.get("brand_id"))

        if self.products.sku_exists(data["sku"]):
            raise ConflictError(f"SKU {data['sku']} already exists")

        base_slug = slugify(data.get("slug") or data["name"])
        data["slug"] = unique_slug(base_slug, self.products.slug_exists)
        if data["status"] == "active":
            data["published_at"] = utcnow()

        product = self.products.create(data)
        self._invalidate()
        logger.info(f"Created product {product.id} ({product.sku})")
        return product

    def update_product(self, product_id: int, payload: ProductUpdate) -> Product:
        current = self.products.find_by_id(product_id)
        if not current:
            raise NotFoundError("Product", product_id)

        fields = payload.model_dump(exclude_unset=True)
        self._check_references(fields.get("category_id"), fields.get("brand_id"))

        if fields.get("sku") and fields["sku"] != current.sku and self.products.sku_exists(
            fields["sku"], exclude_id=product_id
        ):
            raise ConflictError(f"SKU {fields['sku']} already exists")
        if fields.get("slug"):
            fields["slug"] = slugify(fields["slug"])
            if self.products.slug_exists(fields["slug"], exclude_id=product_id):
                raise ConflictError("Product slug already exists")
        if fields.get("status") == "active" and current.published_at is None:
            fields["published_at"] = utcnow()

        product = self.products.update(product_id, fields)
        self._invalidate()
        return product

    def update_stock(self, product_id: int, payload: StockUpdate) -> Product:
        product = self.products.find_by_id(product_id)
        if not product:
            raise NotFoundError("Product", product_id)

        if payload.operation == "set":
            updated = self.products.set_quantity(product_id, payload.quantity)
        else:
            delta = payload.quantity if payload.operation == "add" else -payload.quantity
            if product.quantity + delta < 0 and not product.allow_backorder:
                raise ValidationError("Insufficient stock")
            updated = self.products.change_quantity(product_id, delta)
        if updated is None:
            raise NotFoundError("Product", product_id)

        self._invalidate()
        logger.info(f"Stock of product {product_id}: {product.quantity} -> {updated.quantity} ({payload.operation})")
        return updated

    def delete_product(self, product_id: int) -> None:
        if not self.products.delete(product_id):
            raise NotFoundError("Product", product_id)
        self._invalidate()
        logger.info(f"Deleted product {product_id}")

    @staticmethod
    def price_filters(min_price: Optional[float], max_price: Optional[float]) -> Dict:
        return {
            "min_price": Decimal(str(min_price)) if min_price is not None else None,
            "max_price": Decimal(str(max_price)) if max_price is not None else None,
        }
