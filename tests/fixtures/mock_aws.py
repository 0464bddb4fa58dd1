from unittest.mock import MagicMock

from botocore.exceptions import ClientError


class MockS3Client:
    def __init__(self, objects=None):
        self.objects = objects or {}
        self.downloads = []

    def download_file(self, Bucket, Key, Filename):
        self.downloads.append((Bucket, Key, Filename))
        if Key not in self.objects:
            raise ClientError({'Error': {'Code': '404', 'Message': 'Not Found'}}, 'HeadObject')
        with open(Filename, 'wb') as fh:
            fh.write(self.objects[Key])
        return True


def fake_boto3_client(name, *a, **kw):
    if name == 's3':
        return MockS3Client()
    return MagicMock()
