# app/services/storage_service.py
import os
import uuid
import logging
from typing import Iterable, List
from urllib.parse import urlparse, unquote

from werkzeug.datastructures import FileStorage

from app.core.errors import BadRequestError, UpstreamError

ALLOWED_EXTENSIONS = {'jpg', 'jpeg', 'png', 'gif', 'webp'}


class StorageService:
    """
    Firebase Storage wrapper for pet photos.

    Files are uploaded under `pets/<owner_id>/`, made public, and referenced by
    their public URL. Deletion recovers the blob name from that URL's path.
    """

    def __init__(self, bucket, max_photo_bytes: int, max_photos: int):
        """
        :param bucket: google.cloud.storage Bucket (firebase_admin.storage.bucket(...))
        :param max_photo_bytes: per-file size limit
        :param max_photos: per-request file count limit
        """
        self.bucket = bucket
        self.max_photo_bytes = max_photo_bytes
        self.max_photos = max_photos
        logging.info("StorageService: Firebase Storage bucket configured.")

    # --- validation ---

    def _file_size(self, file: FileStorage) -> int:
        stream = file.stream
        stream.seek(0, os.SEEK_END)
        size = stream.tell()
        stream.seek(0)
        return size

    def validate_photos(self, files: List[FileStorage]):
        """Rejects non-image, oversized or too many files before anything is uploaded."""
        if len(files) > self.max_photos:
            raise BadRequestError(f"A post can carry at most {self.max_photos} photos")
        for file in files:
            mimetype = (file.mimetype or '').lower()
            if not mimetype.startswith('image/'):
                raise BadRequestError("Only image files are allowed")
            if self._file_size(file) > self.max_photo_bytes:
                raise BadRequestError(f"File too large. Maximum size is {self.max_photo_bytes // (1024 * 1024)}MB")

    # --- upload / delete ---

    def upload_pet_photo(self, owner_id: str, file: FileStorage) -> str:
        """Uploads one photo and returns its public URL."""
        filename = file.filename or ''
        extension = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
        if extension not in ALLOWED_EXTENSIONS:
            extension = (file.mimetype or 'image/jpeg').split('/')[-1]
        destination_blob_name = f"pets/{owner_id}/{uuid.uuid4()}.{extension}"

        try:
            blob = self.bucket.blob(destination_blob_name)
            blob.upload_from_file(file.stream, content_type=file.mimetype)
            blob.make_public()
            return blob.public_url
        except Exception as e:
            logging.error(f"Photo upload failed ({destination_blob_name}): {e}", exc_info=True)
            raise UpstreamError("Failed to upload photo", 400)

    def upload_pet_photos(self, owner_id: str, files: List[FileStorage]) -> List[str]:
        """All or nothing: a failed upload purges the photos already stored by this call."""
        self.validate_photos(files)
        uploaded = []
        try:
            for file in files:
                uploaded.append(self.upload_pet_photo(owner_id, file))
        except Exception:
            self.purge_photos(uploaded)
            raise
        return uploaded

    def blob_name_from_url(self, url: str) -> str:
        """
        https://storage.googleapis.com/<bucket>/<blob>  -> <blob>
        https://firebasestorage.googleapis.com/v0/b/<bucket>/o/<blob>?alt=media -> <blob>
        """
        path = unquote(urlparse(url).path).lstrip('/')
        bucket_name = getattr(self.bucket, 'name', None)
        if '/o/' in path:
            return path.split('/o/', 1)[1]
        if bucket_name and path.startswith(f"{bucket_name}/"):
            return path[len(bucket_name) + 1:]
        # <bucket>/<blob> with an unknown bucket name
        return path.split('/', 1)[1] if '/' in path else path

    def delete_by_url(self, url: str):
        self.bucket.blob(self.blob_name_from_url(url)).delete()

    def purge_photos(self, urls: Iterable[str]):
        """Best-effort delete. Failures are logged and never raised."""
        for url in urls:
            try:
                self.delete_by_url(url)
            except Exception as e:
                logging.error(f"Failed to delete photo {url}: {e}", exc_info=True)
