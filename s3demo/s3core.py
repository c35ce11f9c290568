import logging
import os
from minio import Minio
from minio.credentials import (ChainedProvider, EnvAWSProvider, EnvMinioProvider,
                               MinioClientConfigProvider, AWSConfigProvider,
                               IamAwsProvider)
from minio.error import S3Error, InvalidResponseError, ServerError


ENDPOINT_VARIABLE = 'S3_ENDPOINT'
SECURE_VARIABLE = 'S3_SECURE'

DEFAULT_ENDPOINT = 's3.amazonaws.com'
DEFAULT_REGION = 'us-east-1'
# region label used for any endpoint given through S3_ENDPOINT
CUSTOM_REGION = 'us-east-1'

logger = logging.getLogger(__name__)


def resolve_endpoint(environ=None):
    """
    Look for a non-standard endpoint in the environment.
    Returns the endpoint string, or None if we should use the default AWS endpoint.
    """
    if environ is None:
        environ = os.environ
    endpoint = environ.get(ENDPOINT_VARIABLE)
    if not endpoint:
        return None
    logger.info(f'picked up non-standard endpoint {endpoint} (region {CUSTOM_REGION}) '
                f'from {ENDPOINT_VARIABLE} env. variable')
    return endpoint


def resolve_secure(environ=None):
    """ The S3_SECURE setting as a boolean, or None if it is not set """
    if environ is None:
        environ = os.environ
    value = environ.get(SECURE_VARIABLE)
    if value is None:
        return None
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


def split_endpoint(endpoint, secure=None):
    """
    Minio wants a host[:port] and a separate TLS flag, whereas people
    usually give us a URL. Unpick the URL if we have one.

    Args:
        endpoint (str): URL (http://localhost:9000) or bare host[:port]
        secure (bool, optional): TLS flag for a bare host. Defaults to None (meaning True).
    Returns:
        (host, secure) tuple
    """
    slashes = endpoint.find('//')
    if slashes > -1:
        secure = endpoint.startswith('https')
        endpoint = endpoint[slashes+2:]
    elif secure is None:
        secure = True
    return endpoint.rstrip('/'), secure


def get_credentials():
    """
    The default credential chain. We never handle secrets ourselves, the
    SDK providers pick them up from the environment, the minio client
    config file (~/.mc/config.json), the AWS config files or the instance role.
    """
    return ChainedProvider([
        EnvAWSProvider(),
        EnvMinioProvider(),
        MinioClientConfigProvider(),
        AWSConfigProvider(),
        IamAwsProvider(),
    ])


def get_client(endpoint=None, region=None, credentials=None, secure=None):
    """
    Get a Minio client bound to an endpoint and region.

    If endpoint is None we target AWS itself in the default region, otherwise
    the given endpoint under the fixed custom region label.
    """
    if endpoint is None:
        host, secure = DEFAULT_ENDPOINT, True
        region = region or DEFAULT_REGION
    else:
        host, secure = split_endpoint(endpoint, secure)
        region = region or CUSTOM_REGION
    if credentials is None:
        credentials = get_credentials()
    logger.debug(f'creating client for {host} (region={region}, secure={secure})')
    return Minio(host, region=region, secure=secure, credentials=credentials)


def describe_error(exc):
    """
    Turn anything the storage layer can throw at us into a diagnostic string.

    Structured errors from the server give us a code and a message. Opaque ones
    (the SDK could not parse the response) only have the raw body, which we
    decode as text; if that is not valid UTF-8 the UnicodeDecodeError propagates.
    """
    if isinstance(exc, S3Error):
        return f'{exc.code}: {exc.message}'
    if isinstance(exc, InvalidResponseError):
        # the sdk only keeps the raw body on a private attribute
        body = getattr(exc, '_body', None)
        if body is None:
            return str(exc)
        if isinstance(body, bytes):
            body = body.decode('utf-8')
        return body
    if isinstance(exc, ServerError):
        return f"server error ({getattr(exc, 'status_code', 'unknown status')}): {exc}"
    return str(exc)
