# S3 access for task attachments, scoped to a per-user key prefix
import logging
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from task_common.errors import DependencyFailure, Unauthorized, ValidationError

logger = logging.getLogger(__name__)


class AttachmentStorage:
    """
    Presigned-URL access to the attachments bucket.

    Every object key starts with the owner's id followed by '/', and callers
    may only see or delete keys under their own prefix.
    """

    def __init__(self, client, bucket, upload_expires=300, download_expires=3600, clock=time.time):
        self.client = client
        self.bucket = bucket
        self.upload_expires = upload_expires
        self.download_expires = download_expires
        self.clock = clock

    @classmethod
    def from_settings(cls, settings):
        if not settings.attachments_bucket:
            raise ValidationError('ATTACHMENTS_BUCKET is not configured')
        return cls(
            boto3.client('s3', config=settings.boto_config()),
            settings.attachments_bucket,
            upload_expires=settings.upload_url_expires,
            download_expires=settings.download_url_expires,
        )

    @staticmethod
    def _check_owner(user_id, key):
        if not key:
            raise ValidationError('Missing required field: fileKey')
        if not key.startswith(f'{user_id}/'):
            raise Unauthorized('Forbidden')

    def new_key(self, user_id, file_name):
        name = (file_name or '').strip().replace('/', '_')
        if not name:
            raise ValidationError('Missing required field: fileName')
        return f'{user_id}/{int(self.clock() * 1000)}-{name}'

    def upload_url(self, user_id, file_name, file_type):
        """
        Presign a PUT for a new attachment.

        Returns:
            dict: uploadUrl, downloadUrl and the object key.
        """
        if not file_type:
            raise ValidationError('Missing required field: fileType')
        key = self.new_key(user_id, file_name)
        try:
            upload_url = self.client.generate_presigned_url(
                'put_object',
                Params={'Bucket': self.bucket, 'Key': key, 'ContentType': file_type},
                ExpiresIn=self.upload_expires,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Presigning upload for {key} failed: {e}")
            raise DependencyFailure('Attachment storage unavailable') from e
        return {
            'uploadUrl': upload_url,
            'downloadUrl': f'https://{self.bucket}.s3.amazonaws.com/{key}',
            'key': key,
        }

    def download_url(self, user_id, key):
        self._check_owner(user_id, key)
        try:
            return self.client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self.bucket, 'Key': key},
                ExpiresIn=self.download_expires,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Presigning download for {key} failed: {e}")
            raise DependencyFailure('Attachment storage unavailable') from e

    def list_files(self, user_id):
        """Every object under the user's prefix, as key/size/lastModified dicts."""
        files = []
        kwargs = {'Bucket': self.bucket, 'Prefix': f'{user_id}/'}
        while True:
            try:
                page = self.client.list_objects_v2(**kwargs)
            except (BotoCoreError, ClientError) as e:
                logger.error(f"Listing attachments for {user_id} failed: {e}")
                raise DependencyFailure('Attachment storage unavailable') from e
            for obj in page.get('Contents', []):
                modified = obj.get('LastModified')
                files.append({
                    'key': obj['Key'],
                    'size': obj.get('Size', 0),
                    'lastModified': modified.isoformat() if hasattr(modified, 'isoformat') else modified,
                })
            if page.get('IsTruncated'):
                kwargs['ContinuationToken'] = page['NextContinuationToken']
            else:
                break
        return files

    def delete(self, user_id, key):
        self._check_owner(user_id, key)
        try:
            self.client.delete_object(Bucket=self.bucket, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(f"Deleting {key} failed: {e}")
            raise DependencyFailure('Attachment storage unavailable') from e
