"""Хранилище на Native S3 API (boto3)"""

import errno
import os
from contextlib import contextmanager
from typing import List, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .base import StorageBackend
from .log import get_logger
from .workloads import WorkloadConfig

logger = get_logger(__name__, component="s3")

_NOT_FOUND_CODES = {'404', 'NoSuchKey', 'NoSuchBucket', 'NotFound'}


def split_s3_path(path: str) -> Tuple[str, str]:
    """s3://bucket/a/b -> ('bucket', 'a/b')"""
    if not path.startswith("s3://"):
        raise ValueError(f"Not an S3 path: {path}")
    bucket, _, key = path[len("s3://"):].partition('/')
    if not bucket:
        raise ValueError(f"S3 path has no bucket: {path}")
    return bucket, key


@contextmanager
def _translate_errors(path: str):
    """Ошибки boto3 превращаются в OSError, как у файловой системы"""
    try:
        yield
    except ClientError as e:
        code = str(e.response.get('Error', {}).get('Code', ''))
        if code in _NOT_FOUND_CODES:
            raise FileNotFoundError(errno.ENOENT, f"No such S3 object ({code})", path) from e
        raise OSError(f"S3 request for {path} failed: {e}") from e
    except BotoCoreError as e:
        raise OSError(f"S3 request for {path} failed: {e}") from e


class S3WriteStream:
    """
    Поток записи в объект S3.

    Данные копятся в памяти; при превышении part_size уходят частями
    multipart upload. flush() фиксирует объект, после этого запись
    невозможна. close() фиксирует объект, если flush() не вызывался.
    """

    def __init__(self, client, bucket: str, key: str,
                 part_size: int = WorkloadConfig.S3_PART_SIZE):
        self._client = client
        self._bucket = bucket
        self._key = key
        self._part_size = part_size
        self._path = f"s3://{bucket}/{key}"
        self._buffer = bytearray()
        self._upload_id: Optional[str] = None
        self._parts: List[dict] = []
        self._committed = False
        self._failed = False
        self.closed = False

    def write(self, data) -> int:
        if self.closed or self._committed or self._failed:
            raise ValueError(f"Write to committed or failed S3 object {self._path}")
        self._buffer.extend(data)
        while len(self._buffer) >= self._part_size:
            chunk = bytes(self._buffer[:self._part_size])
            del self._buffer[:self._part_size]
            self._upload_part(chunk)
        return len(data)

    def flush(self):
        if not self._committed and not self._failed:
            self._commit()

    def close(self):
        if self.closed:
            return
        try:
            if not self._committed and not self._failed:
                self._commit()
        finally:
            self.closed = True
            self._buffer = bytearray()

    def _upload_part(self, chunk: bytes):
        try:
            with _translate_errors(self._path):
                if self._upload_id is None:
                    response = self._client.create_multipart_upload(
                        Bucket=self._bucket, Key=self._key)
                    self._upload_id = response['UploadId']
                part_number = len(self._parts) + 1
                response = self._client.upload_part(
                    Bucket=self._bucket,
                    Key=self._key,
                    UploadId=self._upload_id,
                    PartNumber=part_number,
                    Body=chunk,
                )
                self._parts.append({'ETag': response['ETag'], 'PartNumber': part_number})
        except OSError:
            self._failed = True
            self._abort()
            raise

    def _commit(self):
        if self._upload_id is not None and self._buffer:
            self._upload_part(bytes(self._buffer))
        try:
            with _translate_errors(self._path):
                if self._upload_id is None:
                    self._client.put_object(
                        Bucket=self._bucket, Key=self._key, Body=bytes(self._buffer))
                else:
                    self._client.complete_multipart_upload(
                        Bucket=self._bucket,
                        Key=self._key,
                        UploadId=self._upload_id,
                        MultipartUpload={'Parts': self._parts},
                    )
        except OSError:
            self._failed = True
            self._abort()
            raise
        self._committed = True
        self._buffer = bytearray()

    def _abort(self):
        if self._upload_id is None:
            return
        upload_id, self._upload_id = self._upload_id, None
        try:
            with _translate_errors(self._path):
                self._client.abort_multipart_upload(
                    Bucket=self._bucket, Key=self._key, UploadId=upload_id)
        except OSError as e:
            logger.warning("Failed to abort multipart upload", path=self._path, error=str(e))

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class S3ReadStream:
    """Поток чтения тела ответа get_object"""

    def __init__(self, body, path: str):
        self._body = body
        self._path = path
        self.closed = False

    def read(self, size: int = -1) -> bytes:
        with _translate_errors(self._path):
            if size is None or size < 0:
                return self._body.read()
            return self._body.read(size)

    def close(self):
        if self.closed:
            return
        self.closed = True
        with _translate_errors(self._path):
            self._body.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()


class S3Storage(StorageBackend):
    """Хранилище поверх boto3 клиента, пути вида s3://bucket/prefix/"""

    name = "native_s3"

    def __init__(self, endpoint_url: str = None, access_key: str = None,
                 secret_key: str = None, client=None,
                 part_size: int = WorkloadConfig.S3_PART_SIZE):
        self.part_size = part_size
        # boto3 клиент потокобезопасен и разделяется всеми воркерами
        self.s3_client = client or boto3.client(
            's3',
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key or os.getenv('AWS_ACCESS_KEY_ID'),
            aws_secret_access_key=secret_key or os.getenv('AWS_SECRET_ACCESS_KEY')
        )

    def exists(self, path: str) -> bool:
        bucket, key = split_s3_path(path)
        try:
            with _translate_errors(path):
                if not key:
                    self.s3_client.head_bucket(Bucket=bucket)
                    return True
                if not key.endswith('/'):
                    self.s3_client.head_object(Bucket=bucket, Key=key)
                    return True
        except FileNotFoundError:
            pass

        # Директория: маркер "prefix/" или любой объект под префиксом
        prefix = key.rstrip('/') + '/'
        try:
            with _translate_errors(path):
                response = self.s3_client.list_objects_v2(
                    Bucket=bucket, Prefix=prefix, MaxKeys=1)
        except FileNotFoundError:
            return False
        return response.get('KeyCount', len(response.get('Contents', []))) > 0

    def mkdirs(self, path: str) -> None:
        bucket, key = split_s3_path(path)
        try:
            with _translate_errors(path):
                self.s3_client.head_bucket(Bucket=bucket)
        except FileNotFoundError:
            logger.info("Creating bucket", bucket=bucket)
            with _translate_errors(path):
                self.s3_client.create_bucket(Bucket=bucket)

        if key.strip('/'):
            with _translate_errors(path):
                self.s3_client.put_object(Bucket=bucket, Key=key.rstrip('/') + '/', Body=b"")

    def create(self, path: str) -> S3WriteStream:
        bucket, key = split_s3_path(path)
        return S3WriteStream(self.s3_client, bucket, key, part_size=self.part_size)

    def open(self, path: str) -> S3ReadStream:
        bucket, key = split_s3_path(path)
        with _translate_errors(path):
            response = self.s3_client.get_object(Bucket=bucket, Key=key)
        return S3ReadStream(response['Body'], path)

    def delete_file(self, path: str) -> None:
        bucket, key = split_s3_path(path)
        with _translate_errors(path):
            self.s3_client.delete_object(Bucket=bucket, Key=key)
