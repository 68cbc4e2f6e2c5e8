from __future__ import annotations

from typing import Optional, Union

from .models import DocumentType

UPLOADS_PREFIX = "/uploads"

UPLOAD_FOLDERS = {
    DocumentType.OFFER_LETTER: "offer-letters",
    DocumentType.AADHAAR: "aadhaar-cards",
    DocumentType.PAN: "pan-cards",
}


def upload_folder(document_type: Union[DocumentType, str]) -> str:
    try:
        return UPLOAD_FOLDERS[DocumentType(document_type)]
    except ValueError:
        return ""


def resolve_document_url(
    path: Optional[str], document_type: Union[DocumentType, str], base_url: str
) -> Optional[str]:
    """Turn a stored upload path into a URL on ``base_url``.

    Paths already under ``/uploads/`` are kept as-is; bare file names are
    placed in the folder for ``document_type``.
    """
    if not path:
        return None
    base_url = base_url.rstrip("/")
    if path.startswith(UPLOADS_PREFIX + "/"):
        return f"{base_url}{path}"
    folder = upload_folder(document_type)
    segments = [UPLOADS_PREFIX]
    if folder:
        segments.append(folder)
    segments.append(path.lstrip("/"))
    return base_url + "/".join(segments)
