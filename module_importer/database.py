"""Firestore document store used by the importer."""

from pathlib import Path
from typing import Any, Optional

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

from .exceptions import (
    CredentialsNotFoundError,
    DocumentWriteError,
    StorageConnectionError,
    StorageError,
)
from .logging_config import get_logger

logger = get_logger('database')

APP_NAME = "module-importer"

BACKEND_ERRORS = (GoogleAPIError, GoogleAuthError)


class ContentStore:
    """Thin wrapper over a Firestore client.

    Exposes only what the importer needs: listing a page of document
    references, deleting references in one batched write, merge-setting a
    document and the server timestamp sentinel.

    Supports context manager protocol for automatic cleanup:
        with ContentStore.connect('serviceAccountKey.json') as store:
            store.merge('modules', 'm1', {'title': 'Math'})
    """

    def __init__(self, client: Any, app: Optional[firebase_admin.App] = None):
        self.client = client
        self.app = app

    @classmethod
    def connect(cls, credentials_path: str, project_id: Optional[str] = None) -> 'ContentStore':
        """Initialize firebase_admin from a service account key file.

        Raises:
            CredentialsNotFoundError: the key file does not exist
            StorageConnectionError: the key is invalid or the client cannot be created
        """
        path = Path(credentials_path)
        if not path.is_file():
            raise CredentialsNotFoundError(str(path))

        options = {'projectId': project_id} if project_id else None
        try:
            cred = credentials.Certificate(str(path))
            app = firebase_admin.initialize_app(cred, options, name=APP_NAME)
        except (ValueError, OSError, GoogleAuthError) as e:
            logger.error(f"Failed to initialize Firebase app: {e}")
            raise StorageConnectionError(str(path), reason=str(e))

        try:
            client = firestore.client(app)
        except (ValueError, GoogleAuthError) as e:
            firebase_admin.delete_app(app)
            logger.error(f"Failed to create Firestore client: {e}")
            raise StorageConnectionError(str(path), reason=str(e))

        logger.debug(f"Connected to Firestore project: {app.project_id}")
        return cls(client, app)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def fetch_documents(self, collection_path: str, limit: int) -> list:
        """Return up to limit document references from a collection.

        A collection that does not exist yields an empty list.
        """
        try:
            snapshots = self.client.collection(collection_path).limit(limit).get()
        except BACKEND_ERRORS as e:
            raise StorageError(
                f"Failed to list documents in '{collection_path}': {e}",
                details={'collection_path': collection_path}
            )
        return [snapshot.reference for snapshot in snapshots]

    def delete_documents(self, references: list) -> None:
        """Delete references in a single batched write and commit it."""
        batch = self.client.batch()
        for reference in references:
            batch.delete(reference)
        try:
            batch.commit()
        except BACKEND_ERRORS as e:
            raise StorageError(
                f"Batched delete of {len(references)} documents failed: {e}",
                details={'count': len(references)}
            )

    def merge(self, collection_path: str, doc_id: str, data: dict) -> None:
        """Set fields of collection_path/doc_id, keeping fields not in data."""
        document_path = f"{collection_path}/{doc_id}"
        try:
            self.client.collection(collection_path).document(doc_id).set(data, merge=True)
        except BACKEND_ERRORS as e:
            logger.error(f"Write failed for {document_path}: {e}")
            raise DocumentWriteError(document_path, reason=str(e))

    def server_timestamp(self) -> Any:
        """Sentinel replaced by the commit time on the server."""
        return firestore.SERVER_TIMESTAMP

    def close(self):
        """Close the client and release the Firebase app."""
        if self.client is not None:
            self.client.close()
            self.client = None
        if self.app is not None:
            firebase_admin.delete_app(self.app)
            self.app = None
            logger.debug("Firestore connection closed")
