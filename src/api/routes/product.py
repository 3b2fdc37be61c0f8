"""Product catalog routes.

Listing, lookup and categories are public. Create, update and delete
require an admin session token. Writes are multipart forms with an optional
``image`` file part.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status

from core.dependencies import MediaUploaderDep, ProductManagerDep
from core.exceptions import BadRequestError
from core.security import require_access
from schemas.product import MessageResponse, Product, ProductPage
from schemas.user import Role, TokenIdentity
from utils.media_uploader import MediaUploader
from utils.product_form import ProductForm, parse_product_form
from utils.query_builder import build_product_query

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Product"])

admin_only = require_access(Role.ADMIN)


def product_form(
    name: Optional[str] = Form(default=None),
    description: Optional[str] = Form(default=None),
    price: Optional[str] = Form(default=None),
    originalPrice: Optional[str] = Form(default=None),
    quantity: Optional[str] = Form(default=None),
    category: Optional[str] = Form(default=None),
    subCategory: Optional[str] = Form(default=None),
    specs: Optional[str] = Form(default=None, description="JSON array of strings"),
) -> ProductForm:
    """Collect the product form fields as raw strings."""
    return ProductForm(
        name=name,
        description=description,
        price=price,
        originalPrice=originalPrice,
        quantity=quantity,
        category=category,
        subCategory=subCategory,
        specs=specs,
    )


def _has_file(image: Optional[UploadFile]) -> bool:
    return image is not None and bool(image.filename)


def _upload_image(uploader: MediaUploader, image: UploadFile) -> str:
    # Size is known from the multipart parser; refuse before reading into memory
    if image.size is not None:
        uploader.check_size(image.size)
    content = image.file.read()
    return uploader.upload(content, image.content_type or "")


@router.post(
    "/products",
    response_model=Product,
    status_code=status.HTTP_201_CREATED,
    summary="Create a product",
)
def create_product(
    product_manager: ProductManagerDep,
    uploader: MediaUploaderDep,
    form: ProductForm = Depends(product_form),
    image: Optional[UploadFile] = File(default=None),
    current_user: TokenIdentity = Depends(admin_only),
) -> Product:
    """Create a product with a freshly uploaded image.

    Args:
        product_manager: Injected ProductManager instance.
        uploader: Injected media uploader.
        form: Raw product form fields.
        image: Product image file.
        current_user: Authenticated admin.

    Returns:
        The created product.

    Raises:
        BadRequestError: If a field is missing or invalid, or no image was sent.
        MediaUploadError: If the image upload fails.
    """
    fields = parse_product_form(form)
    if not _has_file(image):
        raise BadRequestError("No image file uploaded")

    image_url = _upload_image(uploader, image)
    product = product_manager.create_product(fields, image_url)
    logger.info("Product %s created by %s", product.id, current_user.username)
    return product


@router.get("/products", response_model=ProductPage, summary="List products")
def list_products(
    product_manager: ProductManagerDep,
    page: Optional[str] = None,
    limit: Optional[str] = None,
    search: Optional[str] = None,
    category: Optional[str] = None,
) -> ProductPage:
    """List products newest first.

    Args:
        product_manager: Injected ProductManager instance.
        page: 1-based page number, default 1.
        limit: Page size, default effectively unlimited.
        search: Case-insensitive text matched against name, description,
            category, subcategory and specs.
        category: Exact category; "All" disables the filter.

    Returns:
        ProductPage with products and pagination metadata.

    Raises:
        BadRequestError: If page or limit is not a positive integer.
    """
    query = build_product_query(page=page, limit=limit, search=search, category=category)
    return product_manager.list_products(query)


@router.get("/products/{product_id}", response_model=Product, summary="Get a product")
def get_product(product_id: str, product_manager: ProductManagerDep) -> Product:
    return product_manager.get_product(product_id)


@router.put("/products/{product_id}", response_model=Product, summary="Update a product")
def update_product(
    product_id: str,
    product_manager: ProductManagerDep,
    uploader: MediaUploaderDep,
    form: ProductForm = Depends(product_form),
    image: Optional[UploadFile] = File(default=None),
    imageUrl: Optional[str] = Form(default=None),
    current_user: TokenIdentity = Depends(admin_only),
) -> Product:
    """Update a product.

    The image is taken from the uploaded file if there is one, else from
    ``imageUrl``; otherwise the current image is kept.

    Args:
        product_id: The product's id.
        product_manager: Injected ProductManager instance.
        uploader: Injected media uploader.
        form: Raw product form fields.
        image: Optional replacement image file.
        imageUrl: Optional replacement image URL.
        current_user: Authenticated admin.

    Returns:
        The updated product.

    Raises:
        InvalidProductIdError: If the id is malformed.
        ProductNotFoundError: If no product has this id.
        BadRequestError: If a field is missing or invalid.
    """
    # Checked before uploading so a bad id never leaves an orphaned image
    product_manager.ensure_exists(product_id)
    fields = parse_product_form(form)

    new_image = imageUrl.strip() if imageUrl and imageUrl.strip() else None
    if _has_file(image):
        new_image = _upload_image(uploader, image)

    product = product_manager.update_product(product_id, fields, new_image)
    logger.info("Product %s updated by %s", product_id, current_user.username)
    return product


@router.delete(
    "/products/{product_id}", response_model=MessageResponse, summary="Delete a product"
)
def delete_product(
    product_id: str,
    product_manager: ProductManagerDep,
    current_user: TokenIdentity = Depends(admin_only),
) -> MessageResponse:
    """Delete a product.

    Raises:
        InvalidProductIdError: If the id is malformed.
        ProductNotFoundError: If no product has this id.
    """
    product_manager.delete_product(product_id)
    logger.info("Product %s deleted by %s", product_id, current_user.username)
    return MessageResponse(message="Product deleted successfully")


@router.get("/categories", response_model=List[str], summary="List categories")
def list_categories(product_manager: ProductManagerDep) -> List[str]:
    return product_manager.list_categories()
