# storefront/core/storage_utils.py
"""
Supabase Storage helpers (bucket "storefront").

Objects are addressed by their path inside the bucket, e.g.
"users/<user id>/avatar-<uuid>.png"; clients only ever see public URLs.
Errors from the Storage API (StorageException) propagate to the caller.
"""
import uuid

from storefront.core.supabase_client import supabase_admin

BUCKET = "storefront"
_PUBLIC_MARKER = f"/storage/v1/object/public/{BUCKET}/"


def upload_to_storage(path: str, file_bytes: bytes, content_type: str) -> str:
    """Upload (or overwrite) `path` and return its public URL."""
    bucket = supabase_admin().storage.from_(BUCKET)
    bucket.upload(
        path,
        file_bytes,
        {"upsert": "true", "content-type": content_type, "cache-control": "3600"},
    )
    return bucket.get_public_url(path)


def path_from_public_url(url: str) -> str | None:
    """
    https://<proj>.supabase.co/storage/v1/object/public/storefront/users/u/a.png
    -> 'users/u/a.png'; None for URLs outside this bucket.
    """
    _, found, path = url.partition(_PUBLIC_MARKER)
    if not found or not path:
        return None
    return path.split("?", 1)[0]


def delete_public_url(url: str) -> None:
    """Remove the object behind a public URL; foreign URLs are ignored."""
    path = path_from_public_url(url)
    if path:
        supabase_admin().storage.from_(BUCKET).remove([path])


def generate_filename(prefix: str, ext: str) -> str:
    """e.g. "avatar-<uuid4>.png"."""
    return f"{prefix}-{uuid.uuid4()}.{ext}"
