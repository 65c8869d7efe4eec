"""Document loaders — thin wrappers around LangChain document loaders.

Loaders only turn files into plain text; validation of the result is the
pipeline's job.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from langchain_community.document_loaders import PyPDFLoader, TextLoader

if TYPE_CHECKING:
    from langchain_core.documents import Document

_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse newlines and runs of whitespace into single spaces."""
    return _WHITESPACE.sub(" ", text.replace("\n", " ")).strip()


def load_pdf(path: str | Path) -> list[Document]:
    """Load a single PDF file, one ``Document`` per page."""
    return PyPDFLoader(str(path)).load()


def load_text(path: str | Path) -> list[Document]:
    """Load a single UTF-8 text or Markdown file."""
    return TextLoader(str(path), encoding="utf-8").load()


def extract_text(path: str | Path) -> str:
    """Load *path* and return its normalised plain text.

    PDFs go through :func:`load_pdf`; anything else is read as text.
    """
    path = Path(path)
    documents = load_pdf(path) if path.suffix.lower() == ".pdf" else load_text(path)
    return normalize_text(" ".join(doc.page_content for doc in documents))
