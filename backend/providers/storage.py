"""
Object storage for provider identity documents.

Images are written to S3 with boto3; the provider row keeps both the
public URL and the object key so a replaced image can be removed.
"""
import logging
import os
import secrets
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from django.conf import settings

from common.exceptions import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ('image/jpeg', 'image/jpg', 'image/png', 'image/webp')
MAX_FILE_SIZE = 5 * 1024 * 1024


class DocumentStorage:
    """Upload and delete document images in the configured bucket."""

    def __init__(self, bucket=None, client=None):
        self.bucket = bucket or settings.AWS_S3_BUCKET
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                's3',
                region_name=getattr(settings, 'AWS_REGION', None),
                endpoint_url=getattr(settings, 'AWS_ENDPOINT_URL', None),
            )
        return self._client

    @staticmethod
    def validate(uploaded_file):
        if uploaded_file is None:
            raise ValidationError('No file provided')
        content_type = getattr(uploaded_file, 'content_type', None)
        if content_type not in ALLOWED_CONTENT_TYPES:
            raise ValidationError('Only JPEG, PNG, and WebP images are allowed')
        if uploaded_file.size > MAX_FILE_SIZE:
            raise ValidationError('Image must be 5MB or smaller')

    @staticmethod
    def build_key(prefix, filename):
        extension = os.path.splitext(filename or '')[1].lower() or '.jpg'
        return f"{prefix}/{int(time.time() * 1000)}-{secrets.token_hex(6)}{extension}"

    def url_for(self, key):
        endpoint = getattr(settings, 'AWS_ENDPOINT_URL', None)
        if endpoint:
            return f"{endpoint.rstrip('/')}/{self.bucket}/{key}"
        region = getattr(settings, 'AWS_REGION', None) or 'us-east-1'
        return f"https://{self.bucket}.s3.{region}.amazonaws.com/{key}"

    def upload(self, uploaded_file, prefix):
        """
        Store an uploaded image under prefix/.

        Returns:
            (url, key) tuple

        Raises:
            ValidationError: wrong content type or oversized file
            ExternalServiceError: S3 rejected the upload or is not configured
        """
        self.validate(uploaded_file)
        if not self.bucket:
            raise ExternalServiceError('Document storage bucket is not configured', service='s3')

        key = self.build_key(prefix, getattr(uploaded_file, 'name', ''))
        logger.info('Uploading document image', extra={'key': key, 'size': uploaded_file.size})
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=uploaded_file.read(),
                ContentType=uploaded_file.content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error('Document upload failed', extra={'key': key, 'error': str(e)})
            raise ExternalServiceError('Failed to upload document image', service='s3') from e

        return self.url_for(key), key

    def delete(self, key):
        """Remove an object; failures are logged and reported as False."""
        if not key or not self.bucket:
            return False
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.warning('Document delete failed', extra={'key': key, 'error': str(e)})
            return False
        logger.info('Document image deleted', extra={'key': key})
        return True
