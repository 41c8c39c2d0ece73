"""Tests for the S3 object storage adapter (boto3 client mocked)."""
import io
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from core.storage import S3ObjectStorage, StorageError, get_storage, set_storage


def _client_error(code: str, operation: str = "HeadObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def s3_client() -> MagicMock:
    client = MagicMock()
    client.generate_presigned_url.return_value = "https://bucket.s3.test/signed"
    return client


@pytest.fixture
def s3_storage(s3_client: MagicMock) -> S3ObjectStorage:
    return S3ObjectStorage(s3_client, "team-photos")


async def test__issue_upload_url__presigns_put_with_content_type(
    s3_storage: S3ObjectStorage, s3_client: MagicMock,
) -> None:
    url = await s3_storage.issue_upload_url("photos/a.jpg", "image/jpeg", 900)

    assert url == "https://bucket.s3.test/signed"
    s3_client.generate_presigned_url.assert_called_once_with(
        "put_object",
        Params={"Bucket": "team-photos", "Key": "photos/a.jpg", "ContentType": "image/jpeg"},
        ExpiresIn=900,
    )


async def test__issue_download_url__presigns_get(
    s3_storage: S3ObjectStorage, s3_client: MagicMock,
) -> None:
    await s3_storage.issue_download_url("photos/a.jpg", 3600)

    s3_client.generate_presigned_url.assert_called_once_with(
        "get_object",
        Params={"Bucket": "team-photos", "Key": "photos/a.jpg"},
        ExpiresIn=3600,
    )


async def test__issue_download_url__client_error_becomes_storage_error(
    s3_storage: S3ObjectStorage, s3_client: MagicMock,
) -> None:
    s3_client.generate_presigned_url.side_effect = _client_error("AccessDenied")

    with pytest.raises(StorageError) as exc_info:
        await s3_storage.issue_download_url("photos/a.jpg", 3600)

    assert exc_info.value.operation == "issue_download_url"
    assert exc_info.value.path == "photos/a.jpg"


async def test__put__uploads_with_content_type(
    s3_storage: S3ObjectStorage, s3_client: MagicMock,
) -> None:
    await s3_storage.put("thumbnails/a.jpg", b"data", "image/jpeg")

    kwargs = s3_client.put_object.call_args.kwargs
    assert kwargs["Bucket"] == "team-photos"
    assert kwargs["Key"] == "thumbnails/a.jpg"
    assert kwargs["Body"] == b"data"
    assert kwargs["ContentType"] == "image/jpeg"


async def test__get__returns_body_bytes(
    s3_storage: S3ObjectStorage, s3_client: MagicMock,
) -> None:
    s3_client.get_object.return_value = {"Body": io.BytesIO(b"jpeg-bytes")}

    assert await s3_storage.get("photos/a.jpg") == b"jpeg-bytes"


async def test__delete__strips_leading_slash(
    s3_storage: S3ObjectStorage, s3_client: MagicMock,
) -> None:
    await s3_storage.delete("/photos/a.jpg")

    s3_client.delete_object.assert_called_once_with(Bucket="team-photos", Key="photos/a.jpg")


async def test__delete__client_error_becomes_storage_error(
    s3_storage: S3ObjectStorage, s3_client: MagicMock,
) -> None:
    s3_client.delete_object.side_effect = _client_error("InternalError", "DeleteObject")

    with pytest.raises(StorageError):
        await s3_storage.delete("photos/a.jpg")


async def test__exists__true_when_head_succeeds(s3_storage: S3ObjectStorage) -> None:
    assert await s3_storage.exists("photos/a.jpg") is True


@pytest.mark.parametrize("code", ["404", "NoSuchKey", "NotFound"])
async def test__exists__false_for_missing_key(
    s3_storage: S3ObjectStorage, s3_client: MagicMock, code: str,
) -> None:
    s3_client.head_object.side_effect = _client_error(code)

    assert await s3_storage.exists("photos/missing.jpg") is False


async def test__exists__other_errors_raise(
    s3_storage: S3ObjectStorage, s3_client: MagicMock,
) -> None:
    s3_client.head_object.side_effect = _client_error("403")

    with pytest.raises(StorageError):
        await s3_storage.exists("photos/a.jpg")


def test__get_storage__raises_before_startup() -> None:
    set_storage(None)
    with pytest.raises(RuntimeError):
        get_storage()
