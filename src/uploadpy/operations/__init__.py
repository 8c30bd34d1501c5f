"""Upload operations: preparing, committing and running upload rows."""

from .batch_processor import UploadProcessor, UploadResults
from .commit_ops import RowCommitter
from .directive_ops import apply_directives
from .preview_ops import PreviewResult, preview_upload
from .reconcile_ops import RowReconciler
from .tracker import NullTracker, PlainTracker

__all__ = [
    # Engine
    "RowReconciler",
    "RowCommitter",
    "apply_directives",
    # Run control
    "UploadProcessor",
    "UploadResults",
    "PlainTracker",
    "NullTracker",
    # Preview
    "PreviewResult",
    "preview_upload",
]
