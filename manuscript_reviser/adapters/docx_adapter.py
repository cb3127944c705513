from __future__ import annotations
from typing import List
from docx import Document


def _norm(s: str) -> str:
    return " ".join(s.split()).strip()


def extract_paragraph_texts(docx_path: str) -> List[str]:
    """Non-empty paragraph texts of a .docx, headings included, in order."""
    doc = Document(docx_path)
    texts = []
    for p in doc.paragraphs:
        txt = _norm(p.text)
        if txt:
            texts.append(txt)
    return texts


def docx_to_text(docx_path: str) -> str:
    # Each Word paragraph becomes its own blank-line separated paragraph
    return "\n\n".join(extract_paragraph_texts(docx_path))


def emit_docx(paragraphs: List[str], out_docx: str, title: str = "") -> None:
    doc = Document()
    if title:
        doc.add_heading(title, level=1)
    for text in paragraphs:
        doc.add_paragraph(text)
    doc.save(out_docx)
