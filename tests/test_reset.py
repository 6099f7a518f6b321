import math

import pytest

from module_importer.exceptions import ConfigurationError, ResetError
from module_importer.reset import reset_collection

PATH = "modules/m1/videos"


@pytest.mark.parametrize("count", [1, 499, 500, 501, 1000, 1234])
def test_reset_uses_one_commit_per_500_documents(store, count: int) -> None:
    store.seed(PATH, count)

    deleted = reset_collection(store, PATH)

    assert deleted == count
    assert store.collection(PATH) == {}
    assert store.commits == math.ceil(count / 500)
    # one extra fetch observes the empty collection
    assert store.fetches == store.commits + 1


def test_reset_empty_collection_is_noop(store) -> None:
    assert reset_collection(store, PATH) == 0
    assert store.commits == 0
    assert store.fetches == 1


def test_reset_leaves_other_collections_alone(store) -> None:
    store.seed(PATH, 3)
    store.seed("modules/m1/quizzes", 2)

    reset_collection(store, PATH)

    assert len(store.collection("modules/m1/quizzes")) == 2


def test_reset_custom_batch_size(store) -> None:
    store.seed(PATH, 10)

    assert reset_collection(store, PATH, batch_size=3) == 10
    assert store.commits == 4


@pytest.mark.parametrize("batch_size", [0, 501])
def test_reset_rejects_batch_size_outside_backend_limit(store, batch_size: int) -> None:
    with pytest.raises(ConfigurationError):
        reset_collection(store, PATH, batch_size=batch_size)


def test_reset_fetch_failure_raises_reset_error(store) -> None:
    store.seed(PATH, 5)
    store.fail_fetch_on.add(PATH)

    with pytest.raises(ResetError) as exc_info:
        reset_collection(store, PATH)

    assert exc_info.value.collection_path == PATH
    assert exc_info.value.deleted == 0
    assert len(store.collection(PATH)) == 5


def test_reset_commit_failure_raises_reset_error(store) -> None:
    store.seed(PATH, 5)
    store.fail_commit_on.add(PATH)

    with pytest.raises(ResetError) as exc_info:
        reset_collection(store, PATH)

    assert "commit failed" in str(exc_info.value)
    assert store.commits == 0
