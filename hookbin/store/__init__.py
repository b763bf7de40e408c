"""Embedded key-value store: byte-string buckets with atomic transactions."""

from hookbin.store.kv import Bucket, KeyValueStore, Transaction

__all__ = ["Bucket", "KeyValueStore", "Transaction"]
