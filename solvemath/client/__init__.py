"""Client-side access to the solve API."""

from .api_client import (
    SolveApiClient,
    build_solve_payload,
    encode_image_bytes,
    encode_image_file,
    infer_image_media_type,
    interpret_solve_response,
)

__all__ = [
    "SolveApiClient",
    "build_solve_payload",
    "encode_image_bytes",
    "encode_image_file",
    "infer_image_media_type",
    "interpret_solve_response",
]
