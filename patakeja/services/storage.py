"""Property image storage: local disk for development, an S3 bucket in production."""
import os
import uuid

import boto3
from flask import current_app, url_for
from werkzeug.utils import secure_filename

ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "webp", "gif"}
MAX_IMAGES_PER_PROPERTY = 5


class StorageError(Exception):
    pass


def allowed_file(filename):
    return "." in filename and filename.rsplit(".", 1)[1].lower() in ALLOWED_EXTENSIONS


def generate_key(folder, filename):
    ext = secure_filename(filename).rsplit(".", 1)[-1].lower()
    return f"{folder}/{uuid.uuid4()}.{ext}"


def _s3_client():
    return boto3.client(
        "s3",
        region_name=current_app.config["S3_REGION"],
        aws_access_key_id=current_app.config.get("AWS_ACCESS_KEY_ID"),
        aws_secret_access_key=current_app.config.get("AWS_SECRET_ACCESS_KEY"),
    )


def upload_image(file_storage, folder):
    """Store an uploaded image and return its public URL."""
    if not file_storage or not file_storage.filename:
        raise StorageError("No file provided")
    if not allowed_file(file_storage.filename):
        raise StorageError("Unsupported image type")

    key = generate_key(folder, file_storage.filename)
    bucket = current_app.config["STORAGE_BUCKET"]

    if current_app.config["STORAGE_BACKEND"] == "s3":
        extra_args = {}
        if file_storage.mimetype:
            extra_args["ContentType"] = file_storage.mimetype
        _s3_client().upload_fileobj(file_storage.stream, bucket, key, ExtraArgs=extra_args)
        region = current_app.config["S3_REGION"]
        return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"

    target = os.path.join(current_app.config["UPLOAD_FOLDER"], bucket, key)
    os.makedirs(os.path.dirname(target), exist_ok=True)
    file_storage.save(target)
    return url_for("properties.uploaded_image", key=key, _external=True)


def local_image_dir():
    return os.path.join(current_app.config["UPLOAD_FOLDER"], current_app.config["STORAGE_BUCKET"])
