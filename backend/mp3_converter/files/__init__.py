"""Working-directory storage for the conversion service.

Uploaded videos and converted MP3s share one flat directory (./uploads by
default).  Uploads are deleted once their request is done; outputs stay until
downloaded with deletion enabled or removed by POST /cleanup.
"""
from .schemas import StoredArtifact, UploadedFile
from .service import FileStore, get_file_store, set_file_store
from .upload import accept_upload

__all__ = [
    "FileStore",
    "StoredArtifact",
    "UploadedFile",
    "accept_upload",
    "get_file_store",
    "set_file_store",
]
