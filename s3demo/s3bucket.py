import io
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

from minio import Minio
from minio.datatypes import Bucket, Object
from minio.helpers import ObjectWriteResult

from s3demo.s3core import get_client

# listing starts after this key unless told otherwise
START_AFTER = 'foo'
# one page of ListObjectsV2
PAGE_SIZE = 1000


class BucketNotFoundError(LookupError):
    """ The bucket is not in the listing of buckets visible to our credentials """

    def __init__(self, bucket_name):
        super().__init__(f'Bucket [{bucket_name}] not found')
        self.bucket_name = bucket_name


class BucketLookup(Enum):
    SCAN = 'scan'   # list every bucket and compare names
    HEAD = 'head'   # ask the server about this bucket directly


@dataclass
class ObjectPage:
    bucket_name: str
    start_after: Optional[str]
    objects: List[Object] = field(default_factory=list)
    next_start_after: Optional[str] = None   # cursor for the following page, None when exhausted

    @property
    def truncated(self) -> bool:
        return self.next_start_after is not None

    def __len__(self):
        return len(self.objects)


class BucketDemo:
    """
    Binds a storage client to one bucket and exposes the bucket lifecycle
    operations. Nothing here terminates the process: the SDK exceptions
    (minio.error.S3Error etc), OSError for local files and BucketNotFoundError
    all propagate to the caller, which decides how to present them.
    """

    def __init__(self, bucket_name: str, endpoint: Optional[str] = None,
                 client: Optional[Minio] = None, secure: Optional[bool] = None):
        """
        Args:
            bucket_name (str): target bucket, used exactly as given
            endpoint (str, optional): non-standard endpoint (e.g. http://localhost:9000).
                Defaults to None (the default AWS endpoint).
            client (Minio, optional): an already configured client. Defaults to None,
                in which case one is built for the endpoint.
            secure (bool, optional): TLS flag for an endpoint given without a scheme.
        """
        self.logger = logging.getLogger(f's3demo.BucketDemo[{bucket_name}]')
        self._bucket_name = bucket_name
        self.endpoint = endpoint
        self.client = client if client is not None else get_client(endpoint, secure=secure)
        self.logger.debug(f'Initialised BucketDemo (endpoint={endpoint})')

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def create_bucket(self) -> None:
        """ Create the bucket with default settings (no location constraint, no ACL) """
        self.client.make_bucket(self.bucket_name)
        self.logger.debug(f'Created bucket {self.bucket_name}')

    def delete_bucket(self) -> None:
        """ Delete the bucket. The server will refuse if it still holds objects. """
        self.client.remove_bucket(self.bucket_name)
        self.logger.debug(f'Deleted bucket {self.bucket_name}')

    def find_bucket(self) -> Bucket:
        """
        Find our bucket by listing every bucket we can see and comparing names.
        Raises BucketNotFoundError if it is not there.
        """
        buckets = self.client.list_buckets() or []
        for bucket in buckets:
            if bucket.name == self.bucket_name:
                return bucket
        raise BucketNotFoundError(self.bucket_name)

    def bucket_exists(self) -> bool:
        return self.client.bucket_exists(self.bucket_name)

    def list_objects(self, start_after: Optional[str] = START_AFTER, max_keys: int = PAGE_SIZE) -> ObjectPage:
        """
        Get one page of objects from the bucket, starting after start_after.

        The minio listing is a lazy generator over ListObjectsV2 pages (the SDK
        does not let us choose the server page size), so we pull one more object
        than the page holds to find out whether there is anything left. When the
        bucket holds more than max_keys objects after the cursor and max_keys is a
        multiple of the server page (1000 by default), that extra object costs a
        second ListObjectsV2 request. The rest of the bucket is never fetched.
        """
        if max_keys < 1:
            raise ValueError(f'max_keys must be positive, got {max_keys}')
        objects = self.client.list_objects(self.bucket_name,
                                           recursive=True,
                                           start_after=start_after or None)
        objects = list(itertools.islice(objects, max_keys + 1))
        page = ObjectPage(self.bucket_name, start_after, objects[:max_keys])
        if len(objects) > max_keys:
            page.next_start_after = page.objects[-1].object_name
        self.logger.debug(f'[list_objects] {len(page)} objects, next cursor {page.next_start_after}')
        return page

    def iter_objects(self, start_after: Optional[str] = START_AFTER, max_keys: int = PAGE_SIZE) -> Iterator[Object]:
        """ Walk every object after start_after, following the cursor page by page """
        cursor = start_after
        while True:
            page = self.list_objects(start_after=cursor, max_keys=max_keys)
            yield from page.objects
            if not page.truncated:
                return
            cursor = page.next_start_after

    def find_bucket_list_objects(self,
                                 start_after: Optional[str] = START_AFTER,
                                 max_keys: int = PAGE_SIZE,
                                 lookup: BucketLookup = BucketLookup.SCAN,
                                 all_pages: bool = False) -> ObjectPage:
        """
        Check the bucket exists and list its objects.

        Args:
            start_after (str, optional): listing cursor. Defaults to START_AFTER.
            max_keys (int, optional): page size. Defaults to PAGE_SIZE.
            lookup (BucketLookup, optional): SCAN lists all buckets and compares names,
                HEAD queries the bucket directly. Defaults to SCAN.
            all_pages (bool, optional): follow the cursor until the bucket is exhausted
                and return everything as one page. Defaults to False.
        """
        lookup = BucketLookup(lookup)
        if lookup is BucketLookup.SCAN:
            self.find_bucket()
        elif not self.bucket_exists():
            raise BucketNotFoundError(self.bucket_name)

        if all_pages:
            return ObjectPage(self.bucket_name, start_after,
                              list(self.iter_objects(start_after, max_keys)))
        return self.list_objects(start_after=start_after, max_keys=max_keys)

    def put_object(self, dest_key: str, local_path) -> ObjectWriteResult:
        """
        Upload a local file as dest_key. The whole file is read into memory
        first: no streaming, no multipart, no content type guessing.
        """
        with open(local_path, 'rb') as f:
            contents = f.read()
        result = self.client.put_object(self.bucket_name, dest_key,
                                        io.BytesIO(contents), len(contents))
        self.logger.debug(f'Uploaded {local_path} to {self.bucket_name}/{dest_key} ({len(contents)} bytes)')
        return result

    def delete_object(self, key: str) -> None:
        self.client.remove_object(self.bucket_name, key)
        self.logger.debug(f'Deleted {self.bucket_name}/{key}')
