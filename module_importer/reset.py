"""Batched deletion of every document in a collection."""

from .config import MAX_BATCH_SIZE
from .exceptions import ConfigurationError, ResetError, StorageError
from .logging_config import get_logger

logger = get_logger('reset')


def reset_collection(store, collection_path: str, batch_size: int = MAX_BATCH_SIZE) -> int:
    """Delete all documents under collection_path.

    Fetches up to batch_size references, deletes them in one batched write,
    and repeats until a fetch comes back empty. N documents take ceil(N / batch_size)
    commits; an empty or nonexistent collection takes none.

    Args:
        store: Object with fetch_documents(path, limit) and delete_documents(refs)
        collection_path: Slash-separated collection path, e.g. "modules/m1/videos"
        batch_size: Documents per batch, at most 500

    Returns:
        Number of documents deleted

    Raises:
        ResetError: a fetch or commit failed; documents deleted so far stay deleted
    """
    if not 1 <= batch_size <= MAX_BATCH_SIZE:
        raise ConfigurationError(
            f"batch_size must be between 1 and {MAX_BATCH_SIZE}, got {batch_size}",
            config_key='firestore.delete_batch_size'
        )

    deleted = 0
    while True:
        try:
            references = store.fetch_documents(collection_path, batch_size)
            if not references:
                break
            store.delete_documents(references)
        except StorageError as e:
            raise ResetError(collection_path, deleted=deleted, reason=e.message) from e
        deleted += len(references)
        logger.debug(f"Deleted {len(references)} documents from {collection_path} ({deleted} total)")

    logger.debug(f"Collection {collection_path} is empty ({deleted} deleted)")
    return deleted
