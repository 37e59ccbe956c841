"""Pydantic schemas for the conversion endpoints.

- ConvertUrlRequest: JSON body of POST /convert-url
- UploadConversionResponse: descriptor returned by POST /convert
- UrlConversionResponse: descriptor returned by POST /convert-url
- CleanupResponse: result of POST /cleanup
"""
from typing import Optional

from pydantic import BaseModel, Field


class ConvertUrlRequest(BaseModel):
    """Body for POST /convert-url.

    ``url`` is optional at the schema level so that a missing value is
    reported as a 400 with a readable message rather than a 422.
    """
    url: Optional[str] = Field(None, description="Remote video URL handed to ffmpeg")
    bitrate: Optional[str] = Field(None, description="Audio bitrate, e.g. 192k")


class UploadConversionResponse(BaseModel):
    success: bool = True
    input_file: str = Field(..., description="Original name of the uploaded video")
    output_file: str = Field(..., description="Name of the MP3 in the working directory")
    output_path: str = Field(..., description="Path of the MP3 on the server")
    file_size: int = Field(..., description="MP3 size in bytes")
    file_size_mb: float = Field(..., description="MP3 size in MiB, 2 decimals")
    bitrate: str
    download_url: str
    message: str = "Conversión completada exitosamente"


class UrlConversionResponse(BaseModel):
    success: bool = True
    source_url: str
    output_file: str
    output_path: str
    file_size: int
    file_size_mb: float
    bitrate: str
    download_url: str


class CleanupResponse(BaseModel):
    success: bool = True
    files_cleaned: int
    message: str
