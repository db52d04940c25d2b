"""
Minimal Cloudflare R2 client

Signs object requests with AWS Signature Version 4 and sends them with
requests, without depending on botocore.
"""

from .client import R2Client, R2Response
from .config import R2Config
from .errors import R2Error, TransportFailure, HttpStatusError, MalformedErrorBody, R2ConfigError
from .sigv4 import SigV4Signer, Headers

__version__ = "0.1.0"
__all__ = [
    "R2Client",
    "R2Response",
    "R2Config",
    "R2Error",
    "TransportFailure",
    "HttpStatusError",
    "MalformedErrorBody",
    "R2ConfigError",
    "SigV4Signer",
    "Headers",
]
