import os
import pathlib
import tempfile
import mimetypes
from dataclasses import dataclass
from urllib.parse import urlparse
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

LOG = logging.getLogger(__name__)

TEMP_DIR = os.getenv('S3_TEMP_DIR', os.path.join(tempfile.gettempdir(), 'studygen'))
UPLOADS_DIR = os.getenv('UPLOADS_DIR', 'uploads')
AWS_S3_BUCKET = os.getenv('AWS_S3_BUCKET')

EXTENSION_MEDIA_TYPES = {
    '.pdf': 'application/pdf',
    '.txt': 'text/plain',
    '.md': 'text/markdown',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.bmp': 'image/bmp',
    '.webp': 'image/webp',
    '.tif': 'image/tiff',
    '.tiff': 'image/tiff',
}


class FileDownloadError(Exception):
    """Raised when a stored file cannot be downloaded from S3."""


@dataclass
class ResolvedFile:
    path: str
    is_temp: bool = False


def guess_media_type(file_ref: str):
    ext = pathlib.Path(urlparse(file_ref).path if '://' in file_ref else file_ref).suffix.lower()
    if ext in EXTENSION_MEDIA_TYPES:
        return EXTENSION_MEDIA_TYPES[ext]
    mime, _ = mimetypes.guess_type(file_ref)
    return mime


class FileHandler:
    """Maps a document's stored file reference onto a readable local path."""

    def __init__(self, uploads_dir: str = None):
        self.uploads_dir = uploads_dir or UPLOADS_DIR
        self._s3 = None

    @property
    def s3(self):
        if self._s3 is None:
            self._s3 = boto3.client(
                's3',
                region_name=os.getenv('AWS_REGION'),
                aws_access_key_id=os.getenv('AWS_ACCESS_KEY_ID'),
                aws_secret_access_key=os.getenv('AWS_SECRET_ACCESS_KEY'),
            )
        return self._s3

    @staticmethod
    def is_remote(file_ref: str) -> bool:
        if not file_ref:
            return False
        scheme = urlparse(file_ref).scheme
        return scheme in ('s3', 'http', 'https')

    def parse_s3_url(self, s3_url: str):
        if not s3_url:
            raise ValueError('Empty S3 URL')
        parsed = urlparse(s3_url)
        # s3://bucket/key
        if parsed.scheme == 's3':
            return parsed.netloc, parsed.path.lstrip('/')
        # https://bucket.s3.region.amazonaws.com/key
        if parsed.scheme in ('http', 'https'):
            host_parts = parsed.netloc.split('.')
            if len(host_parts) >= 3 and host_parts[1] == 's3':
                return host_parts[0], parsed.path.lstrip('/')
            # https://s3.region.amazonaws.com/bucket/key
            parts = parsed.path.lstrip('/').split('/', 1)
            if len(parts) == 2:
                return parts[0], parts[1]
        raise ValueError('Unsupported S3 URL format')

    def download_from_s3(self, s3_url: str) -> str:
        bucket, key = self.parse_s3_url(s3_url)
        if AWS_S3_BUCKET and bucket != AWS_S3_BUCKET:
            LOG.warning('Downloading from non-default bucket', extra={'bucket': bucket})
        pathlib.Path(TEMP_DIR).mkdir(parents=True, exist_ok=True)
        # keep the key's extension so media type sniffing still works
        suffix = pathlib.Path(key).suffix or ''
        tmp = tempfile.NamedTemporaryFile(delete=False, suffix=suffix, dir=TEMP_DIR)
        local_path = tmp.name
        tmp.close()
        try:
            self.s3.download_file(bucket, key, local_path)
            LOG.info('Downloaded from s3', extra={'bucket': bucket, 'key': key, 'size': os.path.getsize(local_path)})
            return local_path
        except (ClientError, BotoCoreError) as e:
            LOG.exception('S3 download failed', exc_info=True)
            self.cleanup_temp_file(local_path)
            raise FileDownloadError(f'Failed to download document from S3: s3://{bucket}/{key}') from e

    def resolve(self, file_ref: str) -> ResolvedFile:
        if not file_ref:
            raise FileNotFoundError('Document has no stored file')
        if self.is_remote(file_ref):
            return ResolvedFile(path=self.download_from_s3(file_ref), is_temp=True)
        path = pathlib.Path(file_ref)
        if not path.is_absolute():
            path = pathlib.Path(self.uploads_dir) / path
        if not path.exists():
            raise FileNotFoundError(str(path))
        return ResolvedFile(path=str(path))

    def cleanup_temp_file(self, file_path: str):
        try:
            if file_path and os.path.exists(file_path) and os.path.commonpath([os.path.abspath(file_path), os.path.abspath(TEMP_DIR)]) == os.path.abspath(TEMP_DIR):
                os.remove(file_path)
                LOG.info('Removed temp file', extra={'file': file_path})
        except OSError:
            LOG.exception('Failed to cleanup temp file', exc_info=True)
