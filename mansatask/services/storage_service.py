"""
Object storage for product images and receipt PDFs.

S3 is used when AWS credentials and a bucket are configured; otherwise files
live under ``UPLOAD_DIR`` on local disk.
"""

import logging
import os

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from flask import current_app

from mansatask.errors import BadRequestError, NotFoundError

logger = logging.getLogger(__name__)


class LocalStorage:
    storage_type = "local"

    def __init__(self, root, public_base_url):
        self.root = os.path.abspath(root)
        self.public_base_url = public_base_url.rstrip("/")

    def _path(self, key):
        path = os.path.abspath(os.path.join(self.root, key))
        if not path.startswith(self.root + os.sep):
            raise BadRequestError("Invalid file key")
        return path

    def url_for(self, key):
        return f"{self.public_base_url}/api/products/image/{key}"

    def upload_file(self, key, data, content_type=None):
        path = self._path(key)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "wb") as fh:
            fh.write(data)
        logger.info("Stored file locally", extra={"key": key, "size": len(data)})
        return self.url_for(key)

    def get_file(self, key):
        path = self._path(key)
        if not os.path.isfile(path):
            raise NotFoundError("File not found")
        with open(path, "rb") as fh:
            return fh.read()

    def delete_file(self, key):
        path = self._path(key)
        if os.path.isfile(path):
            os.remove(path)


class S3Storage:
    storage_type = "s3"

    def __init__(self, bucket, region, access_key_id, secret_access_key):
        self.bucket = bucket
        self.region = region
        self.client = boto3.client(
            "s3",
            region_name=region,
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
        )

    def url_for(self, key):
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def upload_file(self, key, data, content_type=None):
        extra = {"ContentType": content_type} if content_type else {}
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, **extra)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"S3 upload failed for {key}: {e}")
            raise
        logger.info("Stored file in S3", extra={"key": key, "size": len(data)})
        return self.url_for(key)

    def get_file(self, key):
        try:
            response = self.client.get_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchKey", "404"):
                raise NotFoundError("File not found")
            raise
        return response["Body"].read()

    def delete_file(self, key):
        self.client.delete_object(Bucket=self.bucket, Key=key)


def build_storage(config):
    if config.get("AWS_ACCESS_KEY_ID") and config.get("AWS_SECRET_ACCESS_KEY") and config.get("AWS_S3_BUCKET"):
        return S3Storage(
            bucket=config["AWS_S3_BUCKET"],
            region=config.get("AWS_REGION", "us-east-1"),
            access_key_id=config["AWS_ACCESS_KEY_ID"],
            secret_access_key=config["AWS_SECRET_ACCESS_KEY"],
        )
    return LocalStorage(config.get("UPLOAD_DIR", "uploads"), config.get("BACKEND_URL", ""))


def get_storage():
    """Storage backend for the current app, built on first use."""
    storage = current_app.extensions.get("storage")
    if storage is None:
        storage = build_storage(current_app.config)
        current_app.extensions["storage"] = storage
        logger.info(f"Storage backend: {storage.storage_type}")
    return storage
