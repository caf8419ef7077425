"""
Export module.

Serializes app lists as JSON, CSV or plain text and writes them to the
export directory, optionally handing the file to the share mechanism.
"""

from .pipeline import ExportConfig, ExportPipeline, ShareHandler
from .serializer import serialize

__all__ = ["ExportConfig", "ExportPipeline", "ShareHandler", "serialize"]
