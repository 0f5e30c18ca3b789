"""API routes: partner registration, liveness, and the /api catch-all."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse

from paratygo.emails import registration_subject, render_registration
from paratygo.firebase import get_client, save_registration
from paratygo.mailer import Attachment

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_FILES = 10
MAX_FILE_BYTES = 10 * 1024 * 1024
ALLOWED_TYPES = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "application/pdf",
})


class UploadRejected(ValueError):
    """An uploaded file breaks the count, size or type limits."""


def _read_uploads(uploads: list[UploadFile]) -> list[Attachment]:
    files = [u for u in uploads if u.filename]
    if len(files) > MAX_FILES:
        raise UploadRejected(f"Máximo de {MAX_FILES} arquivos por envio")

    attachments = []
    for upload in files:
        if upload.content_type not in ALLOWED_TYPES:
            raise UploadRejected("Tipo de arquivo não permitido")
        content = upload.file.read(MAX_FILE_BYTES + 1)
        if len(content) > MAX_FILE_BYTES:
            raise UploadRejected(f"Arquivo muito grande: {upload.filename}")
        attachments.append(Attachment(filename=upload.filename, content=content))
    return attachments


def _firestore(request: Request) -> Any:
    db = getattr(request.app.state, "firestore", None)
    if db is None:
        db = get_client()
        request.app.state.firestore = db
    return db


# -- Registration --------------------------------------------------------------


@router.post("/cadastro")
def create_registration(
    request: Request,
    nomeEmpresa: str = Form(...),
    nomeResponsavel: str = Form(...),
    email: str = Form(...),
    categoria: str | None = Form(None),
    descricao: str | None = Form(None),
    whatsapp: str | None = Form(None),
    endereco: str | None = Form(None),
    capacidade: str | None = Form(None),
    redesSociais: str | None = Form(None),
    diferencial: str | None = Form(None),
    termos: str | None = Form(None),
    documentos: list[UploadFile] | None = File(None),
) -> JSONResponse:
    """Store a partner registration and email the team a formatted copy."""
    try:
        attachments = _read_uploads(documentos or [])
    except UploadRejected as exc:
        logger.warning("Registration upload rejected: %s", exc)
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": str(exc), "error": str(exc)},
        )

    form_data: dict[str, Any] = {
        "nomeEmpresa": nomeEmpresa,
        "categoria": categoria,
        "descricao": descricao,
        "nomeResponsavel": nomeResponsavel,
        "email": email,
        "whatsapp": whatsapp,
        "endereco": endereco,
        "capacidade": capacidade,
        "redesSociais": redesSociais,
        "diferencial": diferencial,
        "arquivosNomes": ", ".join(a.filename for a in attachments) or None,
        "termos": termos == "on",
        "status": "pendente",
    }

    try:
        doc_id = save_registration(_firestore(request), form_data)
        request.app.state.mailer.send(
            subject=registration_subject(form_data),
            html=render_registration(form_data),
            attachments=attachments or None,
        )
    except Exception as exc:
        logger.exception("Failed to process registration for %r", nomeEmpresa)
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "message": "Erro ao processar cadastro. Tente novamente.",
                "error": str(exc),
            },
        )

    return JSONResponse(content={
        "success": True,
        "message": "Cadastro realizado com sucesso!",
        "id": doc_id,
    })


# -- Liveness ------------------------------------------------------------------


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# -- Catch-all (must be registered last) ---------------------------------------


@router.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
    include_in_schema=False,
)
def not_found(path: str) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": "Rota não encontrada"})
