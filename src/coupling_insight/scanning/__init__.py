"""Scanning: source discovery, Rust parsing and fact extraction."""

from .classify import classify, strongest
from .discovery import discover_source_files
from .models import (
    Declaration,
    DeclarationKind,
    FileFacts,
    InteractionKind,
    Reference,
    SkippedUnit,
    SourceLocation,
    SourceUnit,
    TargetKind,
    UnitResult,
    Visibility,
)
from .rust_extractor import RustFactExtractor, extract_facts
from .treesitter_parser import RustParser

__all__ = [
    "Declaration",
    "DeclarationKind",
    "FileFacts",
    "InteractionKind",
    "Reference",
    "RustFactExtractor",
    "RustParser",
    "SkippedUnit",
    "SourceLocation",
    "SourceUnit",
    "TargetKind",
    "UnitResult",
    "Visibility",
    "classify",
    "discover_source_files",
    "extract_facts",
    "strongest",
]
