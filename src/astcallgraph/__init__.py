"""astcallgraph: struct dependency and call graphs for Go modules, without running Go."""

from __future__ import annotations

from . import errors
from .aggregate import AnalysisResult, analyze_directory, analyze_file
from .modfile import Module, read_modfile

__all__ = [
    "AnalysisResult",
    "Module",
    "analyze_directory",
    "analyze_file",
    "errors",
    "read_modfile",
]
