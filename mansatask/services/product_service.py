import secrets
import string
import time
from datetime import datetime

from flask import current_app

from mansatask.errors import BadRequestError, ForbiddenError, NotFoundError
from mansatask.extensions import db
from mansatask.models.product import UNLIMITED_QUANTITY, Product
from mansatask.services.storage_service import get_storage

ALLOWED_IMAGE_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
    "gif": "image/gif",
}


def create_product(*, user_id: str, payload: dict) -> Product:
    quantity = payload.get("quantity")
    product = Product(
        user_id=user_id,
        name=payload["name"],
        description=payload.get("description"),
        price=payload["price"],
        image_url=payload.get("image_url"),
        quantity=UNLIMITED_QUANTITY if quantity is None else quantity,
    )
    db.session.add(product)
    db.session.commit()

    current_app.logger.info(f"Product created: {product.id}")
    return product


def list_products(*, user_id: str):
    return (
        Product.query
        .filter_by(user_id=user_id, deleted_at=None)
        .order_by(Product.created_at.desc())
        .all()
    )


def get_product(*, user_id: str, product_id: str) -> Product:
    product = db.session.get(Product, product_id)
    if not product or product.deleted_at is not None:
        raise NotFoundError("Product not found")
    if product.user_id != user_id:
        raise ForbiddenError("You do not have access to this product")
    return product


def update_product(*, user_id: str, product_id: str, payload: dict) -> Product:
    product = get_product(user_id=user_id, product_id=product_id)
    for field in ("name", "description", "price", "image_url", "quantity"):
        if field in payload and payload[field] is not None:
            setattr(product, field, payload[field])

    db.session.commit()
    current_app.logger.info(f"Product updated: {product.id}")
    return product


def delete_product(*, user_id: str, product_id: str) -> dict:
    product = get_product(user_id=user_id, product_id=product_id)
    product.deleted_at = datetime.utcnow()
    db.session.commit()

    current_app.logger.info(f"Product deleted: {product.id}")
    return {"message": "Product deleted successfully"}


def _extension(filename):
    if not filename or "." not in filename:
        return None
    return filename.rsplit(".", 1)[1].lower()


def upload_image(*, user_id: str, file) -> dict:
    if file is None or not file.filename:
        raise BadRequestError("No image file provided")

    ext = _extension(file.filename)
    if ext not in ALLOWED_IMAGE_TYPES or (
        file.mimetype and file.mimetype not in ALLOWED_IMAGE_TYPES.values()
    ):
        raise BadRequestError("Invalid file type. Allowed types: jpeg, jpg, png, webp, gif")

    data = file.read()
    if len(data) > current_app.config["MAX_IMAGE_SIZE"]:
        raise BadRequestError("File size exceeds the 5MB limit")
    if not data:
        raise BadRequestError("Uploaded file is empty")

    rand = "".join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(8))
    key = f"products/{user_id}/{int(time.time() * 1000)}-{rand}.{ext}"

    storage = get_storage()
    url = storage.upload_file(key, data, ALLOWED_IMAGE_TYPES[ext])

    current_app.logger.info(f"Product image uploaded: {key}")
    return {"imageUrl": url, "key": key, "storageType": storage.storage_type}


def get_image(*, key: str):
    """Returns ``(bytes, content_type)`` for a stored product image."""
    if not key.startswith("products/"):
        raise NotFoundError("Image not found")

    ext = _extension(key)
    data = get_storage().get_file(key)
    return data, ALLOWED_IMAGE_TYPES.get(ext, "application/octet-stream")
