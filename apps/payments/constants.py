from django.conf import settings

# -----------------------------
# PROOF OF PAYMENT UPLOADS
# -----------------------------

MAX_PROOF_SIZE_MB = getattr(settings, "PAYMENT_PROOF_MAX_MB", 10)
MAX_PROOF_SIZE_BYTES = MAX_PROOF_SIZE_MB * 1024 * 1024

ALLOWED_PROOF_EXTENSIONS = {"jpeg", "jpg", "png", "gif", "pdf"}

ALLOWED_PROOF_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "application/pdf",
}


# -----------------------------
# STAGES
# -----------------------------

PAYABLE_STATUSES = ("pending", "available", "pending_verification")
COMPLETABLE_STATUSES = ("available", "pending_verification")

DEFAULT_PAYMENT_METHOD = "Bank transfer"
