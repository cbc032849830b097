"""DigitalOcean Spaces access through the S3 API."""
import logging

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from core.imports import current_app

logger = logging.getLogger(__name__)


def _settings():
    cfg = current_app.config
    region = cfg.get("DO_REGION") or "nyc3"
    bucket = cfg.get("DO_BUCKET") or "kansaco-images"
    endpoint = cfg.get("DO_SPACES_ENDPOINT") or f"https://{region}.digitaloceanspaces.com"
    base_url = cfg.get("DO_BASE_URL") or f"https://{bucket}.{region}.digitaloceanspaces.com"
    return region, bucket, endpoint, base_url


def get_client():
    client = current_app.extensions.get("spaces_client")
    if client is None:
        region, _, endpoint, _ = _settings()
        client = boto3.client(
            "s3",
            region_name=region,
            endpoint_url=endpoint,
            aws_access_key_id=current_app.config.get("DO_ACCESS_KEY"),
            aws_secret_access_key=current_app.config.get("DO_SECRET_KEY"),
            config=BotoConfig(s3={"addressing_style": "path"}),
        )
        current_app.extensions["spaces_client"] = client
    return client


def bucket_name():
    return _settings()[1]


def get_file_url(key):
    base = current_app.config.get("DO_CDN_URL") or _settings()[3]
    return f"{base.rstrip('/')}/{key.lstrip('/')}"


def _is_not_found(err):
    code = str(err.response.get("Error", {}).get("Code", ""))
    status = err.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in ("404", "NoSuchKey", "NotFound", "NoSuchBucket") or status == 404


def upload_file(key, data, content_type=None):
    kwargs = {"Bucket": bucket_name(), "Key": key, "Body": data or b"", "ACL": "public-read"}
    if content_type:
        kwargs["ContentType"] = content_type
    get_client().put_object(**kwargs)
    logger.info("Uploaded %s (%d bytes)", key, len(data or b""))
    return get_file_url(key)


def delete_file(key):
    get_client().delete_object(Bucket=bucket_name(), Key=key)
    logger.info("Deleted %s", key)


def file_exists(key):
    try:
        get_client().head_object(Bucket=bucket_name(), Key=key)
        return True
    except ClientError as err:
        if _is_not_found(err):
            return False
        raise


def _to_entry(obj):
    modified = obj.get("LastModified")
    return {
        "key": obj["Key"],
        "url": get_file_url(obj["Key"]),
        "size": int(obj.get("Size") or 0),
        "lastModified": modified.isoformat() if hasattr(modified, "isoformat") else modified,
    }


def list_objects(prefix=None, page=1, limit=20, continuation_token=None):
    """
    List image objects under ``prefix``.

    With a continuation token a single S3 page is fetched; otherwise the
    listing is walked and sliced by ``page``/``limit`` so ``total`` is exact.
    """
    kwargs = {"Bucket": bucket_name()}
    if prefix:
        kwargs["Prefix"] = prefix

    try:
        if continuation_token:
            resp = get_client().list_objects_v2(ContinuationToken=continuation_token, MaxKeys=limit, **kwargs)
            rows = [o for o in resp.get("Contents", []) if not o["Key"].endswith("/")]
            return {
                "images": [_to_entry(o) for o in rows],
                "total": len(rows),
                "page": page,
                "limit": limit,
                "hasMore": bool(resp.get("IsTruncated")),
                "nextToken": resp.get("NextContinuationToken"),
            }

        rows = []
        paginator = get_client().get_paginator("list_objects_v2")
        for chunk in paginator.paginate(**kwargs):
            rows.extend(o for o in chunk.get("Contents", []) if not o["Key"].endswith("/"))
    except ClientError as err:
        if _is_not_found(err):
            logger.warning("Bucket or prefix not found while listing: %s", prefix)
            rows = []
        else:
            raise

    start = (page - 1) * limit
    window = rows[start:start + limit]
    return {
        "images": [_to_entry(o) for o in window],
        "total": len(rows),
        "page": page,
        "limit": limit,
        "hasMore": start + limit < len(rows),
        "nextToken": None,
    }
