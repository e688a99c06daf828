"""
Content-class classifier: file name -> language -> ContentClass.
"""

import os
from typing import Optional

from core.schemas import ContentClass, ContextFile

EXTENSION_LANGUAGES = {
    ".go": "go",
    ".js": "javascript",
    ".jsx": "javascript",
    ".ts": "typescript",
    ".tsx": "typescript",
    ".py": "python",
    ".java": "java",
    ".c": "c",
    ".h": "c",
    ".cpp": "cpp",
    ".cc": "cpp",
    ".cxx": "cpp",
    ".hpp": "cpp",
    ".rs": "rust",
    ".php": "php",
    ".rb": "ruby",
    ".sh": "shell",
    ".bash": "shell",
    ".zsh": "shell",
    ".sql": "sql",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".xml": "xml",
    ".json": "json",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".md": "markdown",
    ".markdown": "markdown",
    ".txt": "text",
    ".text": "text",
    "": "text",
}

LANGUAGE_CLASSES = {
    "go": ContentClass.BRACE,
    "javascript": ContentClass.BRACE,
    "typescript": ContentClass.BRACE,
    "java": ContentClass.BRACE,
    "c": ContentClass.BRACE,
    "cpp": ContentClass.BRACE,
    "rust": ContentClass.BRACE,
    "php": ContentClass.BRACE,
    "css": ContentClass.BRACE,
    "json": ContentClass.BRACE,
    "python": ContentClass.INDENT,
    "yaml": ContentClass.INDENT,
    "html": ContentClass.TAG,
    "xml": ContentClass.TAG,
}


def detect_language(file_name: str) -> str:
    """Detect the language from the file extension ("unknown" if unmapped)."""
    ext = os.path.splitext(file_name or "")[1].lower()
    return EXTENSION_LANGUAGES.get(ext, "unknown")


def class_for_language(language: Optional[str]) -> ContentClass:
    return LANGUAGE_CLASSES.get((language or "").lower(), ContentClass.FREEFORM)


def classify(file_name: str) -> ContentClass:
    """
    Map a file identifier to the content class used by the completeness checks.

    Example:
        >>> classify("src/main.go")
        <ContentClass.BRACE: 'brace-delimited'>
    """
    return class_for_language(detect_language(file_name))


def load_context_file(path: str, label: Optional[str] = None) -> ContextFile:
    """
    Read a reference file for GenerationRequest.context_files.

    The label defaults to the path relative to the working directory, or the
    base name when the file lies outside it.
    """
    with open(path, "r", encoding="utf-8") as f:
        content = f.read()
    if label is None:
        rel = os.path.relpath(path)
        label = os.path.basename(path) if rel.startswith("..") else rel
    return ContextFile(label=label, content=content, language=detect_language(path))
