import subprocess
import time
import uuid
import logging
from unittest.mock import MagicMock

import pytest
from minio import Minio
from minio.error import S3Error


MINIO_IMAGE = "quay.io/minio/minio:latest"
ACCESS_KEY = "minioadmin"
SECRET_KEY = "minioadmin"
MINIO_URL = "http://localhost:9000"


def _cleanup_old_minio():
    """Remove any leftover MinIO containers from previous runs."""
    try:
        result = subprocess.run(
            ["docker", "ps", "-a", "--filter", "name=s3demo-minio", "--format", "{{.ID}}"],
            check=False,
            capture_output=True,
            text=True,
        )
        ids = result.stdout.strip().splitlines()
        if ids:
            subprocess.run(["docker", "rm", "-f"] + ids, check=False)
    except OSError as e:
        print(f"Warning: cleanup failed: {e}")


@pytest.fixture(autouse=True)
def silence_noisy_loggers():
    """Silence chatty third-party loggers"""
    logging.getLogger('urllib3').setLevel(logging.WARNING)


@pytest.fixture(scope="session")
def minio_service():
    """Run a temporary MinIO server in Docker and return a configured client."""
    docker = pytest.importorskip("docker")
    try:
        client = docker.from_env()
        client.ping()
    except docker.errors.DockerException as e:
        pytest.skip(f"Docker not available: {e}")

    _cleanup_old_minio()

    container = client.containers.run(
        MINIO_IMAGE,
        command=["server", "/data"],
        environment={
            "MINIO_ROOT_USER": ACCESS_KEY,
            "MINIO_ROOT_PASSWORD": SECRET_KEY,
        },
        ports={"9000/tcp": 9000},
        detach=True,
        remove=True,
        name=f"s3demo-minio-{uuid.uuid4()}",
    )

    minio_client = Minio("localhost:9000", ACCESS_KEY, SECRET_KEY, secure=False)

    for _ in range(30):
        try:
            minio_client.list_buckets()
            break
        except Exception:
            time.sleep(0.5)
    else:
        logs = container.logs().decode()
        container.stop()
        pytest.fail(f"MinIO did not start in time. Logs:\n{logs}")

    yield minio_client

    container.stop()


@pytest.fixture
def minio_env(monkeypatch, minio_service):
    """Point the default credential chain and S3_ENDPOINT at the test server."""
    monkeypatch.setenv("S3_ENDPOINT", MINIO_URL)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", ACCESS_KEY)
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", SECRET_KEY)
    return MINIO_URL


@pytest.fixture
def bucket_name(minio_service):
    """A unique bucket name, removed (with contents) after the test if it still exists."""
    name = f"test-{uuid.uuid4()}"
    yield name
    try:
        if minio_service.bucket_exists(name):
            for obj in minio_service.list_objects(name, recursive=True):
                minio_service.remove_object(name, obj.object_name)
            minio_service.remove_bucket(name)
    except S3Error:
        pass


def make_object(name, size=0, etag='abc123'):
    """ Something which looks like a minio.datatypes.Object """
    obj = MagicMock(object_name=name, size=size, etag=etag, last_modified=None)
    return obj


@pytest.fixture
def mock_client():
    """ A Minio client double with one bucket and three objects in it """
    client = MagicMock()
    buckets = []
    for name in ('other-bucket', 'test-bucket-1'):
        bucket = MagicMock()
        bucket.name = name
        buckets.append(bucket)
    client.list_buckets.return_value = buckets
    client.bucket_exists.return_value = True
    objects = [make_object('logs/a.txt', 1), make_object('logs/b.txt', 2), make_object('report.txt', 5)]

    def listing(bucket_name, recursive=False, start_after=None):
        # keys come back in order, strictly after the cursor
        return iter([o for o in objects if start_after is None or o.object_name > start_after])

    client.list_objects.side_effect = listing
    client.put_object.return_value = MagicMock(etag='etag-1', version_id=None)
    return client


@pytest.fixture
def object_factory():
    return make_object
