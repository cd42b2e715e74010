"""Report artifact generation."""

from .serializer import ReportSerializer, ReportArtifact, escape_field

__all__ = ["ReportSerializer", "ReportArtifact", "escape_field"]
