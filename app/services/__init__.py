"""
服务层模块
"""
from .storage import ObjectStore, LocalObjectStore, S3ObjectStore, build_object_store, get_object_store
from .extractor import PdfTextExtractor, get_text_extractor
from .submission import SubmissionPipeline, build_storage_key, get_submission_pipeline

__all__ = [
    "ObjectStore",
    "LocalObjectStore",
    "S3ObjectStore",
    "build_object_store",
    "get_object_store",
    "PdfTextExtractor",
    "get_text_extractor",
    "SubmissionPipeline",
    "build_storage_key",
    "get_submission_pipeline",
]
