import os

from rest_framework.exceptions import ValidationError

from apps.payments.constants import (
    ALLOWED_PROOF_EXTENSIONS,
    ALLOWED_PROOF_MIME_TYPES,
    MAX_PROOF_SIZE_BYTES,
    MAX_PROOF_SIZE_MB,
)


def file_extension(name):
    return os.path.splitext(name or "")[1].lower().replace(".", "")


def validate_payment_proof(file):
    if not file:
        raise ValidationError("File is required.")

    if file.size > MAX_PROOF_SIZE_BYTES:
        raise ValidationError(f"File too large. Max allowed size is {MAX_PROOF_SIZE_MB} MB.")

    ext = file_extension(file.name)
    if not ext:
        raise ValidationError("File extension missing.")

    if ext not in ALLOWED_PROOF_EXTENSIONS:
        raise ValidationError("Only images (JPEG, PNG, GIF) and PDF files are allowed.")

    content_type = getattr(file, "content_type", None)
    if content_type and content_type not in ALLOWED_PROOF_MIME_TYPES:
        raise ValidationError("Invalid file content type.")

    return True
