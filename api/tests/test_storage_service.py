from botocore.exceptions import EndpointConnectionError

from app.core.exceptions import ErrorKind
from app.services.storage_service import StorageGateway, key_for_user
from tests.factories import make_gateway
from tests.fakes import FakeS3Client, client_error

USER_ID = "a" * 32


def test_key_for_user_is_fixed_per_user():
    assert key_for_user(USER_ID) == f"pdfs/{USER_ID}/learning-textbook.pdf"


def test_is_configured_requires_keys_and_bucket():
    assert make_gateway().is_configured
    assert not make_gateway(configured=False).is_configured
    assert not StorageGateway("bucket", "us-east-1", "key", "").is_configured


def test_upload_overwrites_private_object_and_returns_url():
    s3 = FakeS3Client()
    gateway = make_gateway(s3)

    first = gateway.upload(key_for_user(USER_ID), b"%PDF-1")
    second = gateway.upload(key_for_user(USER_ID), b"%PDF-2")

    assert first.success and second.success
    assert second.url == f"https://textbooks.s3.us-east-1.amazonaws.com/pdfs/{USER_ID}/learning-textbook.pdf"
    assert s3.objects == {key_for_user(USER_ID): b"%PDF-2"}
    assert s3.put_calls[0]["ACL"] == "private"
    assert s3.put_calls[0]["ContentType"] == "application/pdf"


def test_object_url_uses_custom_endpoint():
    gateway = StorageGateway("textbooks", "auto", "key", "secret", endpoint_url="http://localhost:9000/", client=FakeS3Client())
    assert gateway.object_url("pdfs/x.pdf") == "http://localhost:9000/textbooks/pdfs/x.pdf"


def test_upload_failure():
    s3 = FakeS3Client()
    s3.put_error = client_error("AccessDenied", "PutObject")

    result = make_gateway(s3).upload("k", b"data")

    assert not result.success
    assert result.error_kind == ErrorKind.UPSTREAM


def test_download_existing_object():
    s3 = FakeS3Client()
    s3.objects["k"] = b"%PDF-data"

    result = make_gateway(s3).download("k")

    assert result.success
    assert result.data == b"%PDF-data"


def test_download_missing_object_is_not_found():
    result = make_gateway(FakeS3Client()).download("missing")

    assert not result.success
    assert result.error_kind == ErrorKind.NOT_FOUND


def test_download_access_denied_is_upstream():
    s3 = FakeS3Client()
    s3.get_error = client_error("AccessDenied")

    result = make_gateway(s3).download("k")

    assert result.error_kind == ErrorKind.UPSTREAM


def test_download_network_failure_is_upstream():
    s3 = FakeS3Client()
    s3.get_error = EndpointConnectionError(endpoint_url="https://s3.example.com")

    result = make_gateway(s3).download("k")

    assert result.error_kind == ErrorKind.UPSTREAM


def test_download_empty_body_is_upstream():
    s3 = FakeS3Client()
    s3.objects["k"] = b""

    result = make_gateway(s3).download("k")

    assert not result.success
    assert result.error == "No data received from S3"


def test_signed_url_passes_ttl():
    result = make_gateway(FakeS3Client()).signed_url("pdfs/u/learning-textbook.pdf", 3600)

    assert result.success
    assert result.url == "https://signed.example.com/textbooks/pdfs/u/learning-textbook.pdf?expires=3600"


def test_operations_skip_when_not_configured():
    gateway = make_gateway(configured=False)

    for result in (gateway.upload("k", b"x"), gateway.download("k"), gateway.signed_url("k")):
        assert not result.success
        assert result.error_kind == ErrorKind.NOT_CONFIGURED
